# maxpulse_backend/services/auth_user_service.py
"""
Creates app accounts for customers who redeemed an activation code.
"""

import base64
import secrets
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from maxpulse_backend.core.config import settings
from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.core.security import create_jwt_token, hash_password
from maxpulse_backend.models.auth_user import AuthUser
from maxpulse_backend.models.base import utcnow
from maxpulse_backend.schemas.auth_user import CreateAuthUserRequest
from maxpulse_backend.services.email_service import EmailService
from maxpulse_backend.utils.error_handling import handle_exception
from maxpulse_backend.utils.validators import validate_email

logger = get_logger(__name__)

REQUIRED_METADATA_FIELDS = ("activation_code_id", "distributor_id", "assessment_type", "plan_type")
ASSESSMENT_TYPES = ("individual", "group")
PLAN_TYPES = ("annual", "monthly")

DUPLICATE_ACCOUNT_MESSAGE = "An account with this email already exists."


class DuplicateAccountError(Exception):
    """Raised when the email already belongs to an account"""

    def __init__(self, email: str, password_reset_sent: bool):
        super().__init__(DUPLICATE_ACCOUNT_MESSAGE)
        self.email = email
        self.password_reset_sent = password_reset_sent


def generate_temporary_password() -> str:
    """
    16 characters: base64 of 12 random bytes with +, / and = mapped to A, B and C.
    """
    encoded = base64.b64encode(secrets.token_bytes(12)).decode("ascii")
    return encoded.replace("+", "A").replace("/", "B").replace("=", "C")


def validate_create_request(request: CreateAuthUserRequest) -> Tuple[bool, Optional[str]]:
    """
    Returns:
        Tuple of (is_valid, error_message)
    """
    if not request.email:
        return False, "Email is required"

    is_valid, error = validate_email(request.email)
    if not is_valid:
        return False, "Invalid email format"

    if not request.name or not request.name.strip():
        return False, "Name is required"

    metadata = request.metadata
    if not metadata:
        return False, "Metadata is required"

    if any(not metadata.get(field) for field in REQUIRED_METADATA_FIELDS):
        return False, "Missing required metadata fields"

    if metadata["assessment_type"] not in ASSESSMENT_TYPES:
        return False, "Invalid assessment_type"

    if metadata["plan_type"] not in PLAN_TYPES:
        return False, "Invalid plan_type"

    return True, None


class AuthUserService:
    """Account creation for activation code customers"""

    @staticmethod
    def build_password_reset_link(user: AuthUser) -> str:
        token = create_jwt_token(
            user.id,
            expires_delta_minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES,
            token_type="password_reset",
            extra_claims={"email": user.email}
        )
        base_url = settings.APP_LOGIN_URL.rsplit("/", 1)[0]
        return f"{base_url}/reset-password?token={token}"

    @staticmethod
    async def _send_password_reset(user: AuthUser) -> bool:
        try:
            return await EmailService.send_password_reset_email(
                user.email, user.name, AuthUserService.build_password_reset_link(user)
            )
        except HTTPException as e:
            logger.warning(f"⚠️ Password reset email to {user.email} failed: {e.detail}")
            return False

    @staticmethod
    async def create_auth_user(db: Session, request: CreateAuthUserRequest) -> Dict[str, Any]:
        """
        Create the account and email the temporary credential.

        Raises:
            HTTPException: 400 on validation failure, 500 on storage failure
            DuplicateAccountError: when the email is already registered
        """
        is_valid, error = validate_create_request(request)
        if not is_valid:
            logger.warning(f"❌ Auth user validation failed: {error}")
            raise HTTPException(status.HTTP_400_BAD_REQUEST, error)

        email = request.email.strip().lower()
        metadata = request.metadata

        existing = db.query(AuthUser).filter(func.lower(AuthUser.email) == email).first()
        if existing:
            logger.warning(f"⚠️ User already exists: {email}, sending password reset instead")
            reset_sent = await AuthUserService._send_password_reset(existing)
            raise DuplicateAccountError(email, reset_sent)

        temporary_password = generate_temporary_password()

        try:
            user = AuthUser(
                email=email,
                name=request.name.strip(),
                password_hash=hash_password(temporary_password),
                email_confirmed=True,
                user_metadata={
                    "full_name": request.name.strip(),
                    "activation_code_id": metadata["activation_code_id"],
                    "distributor_id": metadata["distributor_id"],
                    "assessment_type": metadata["assessment_type"],
                    "plan_type": metadata["plan_type"],
                    "group_id": metadata.get("group_id"),
                    "created_via": "activation_code",
                    "created_at": utcnow().isoformat(),
                }
            )
            db.add(user)
            db.commit()
            db.refresh(user)
        except IntegrityError:
            # Lost a race with a concurrent request for the same email
            db.rollback()
            raise DuplicateAccountError(email, False)
        except Exception as e:
            db.rollback()
            raise handle_exception(e, "Error creating auth user", detail="Failed to create user account")

        logger.info(f"✅ Auth user created: {user.id}")

        # The account exists at this point, a mail failure is only logged
        try:
            await EmailService.send_welcome_email(email, user.name, temporary_password, metadata["plan_type"])
        except HTTPException as e:
            logger.warning(f"⚠️ Welcome email to {email} failed (user created): {e.detail}")

        return {
            "success": True,
            "auth_user_id": str(user.id),
            "temporary_password": temporary_password,
        }
