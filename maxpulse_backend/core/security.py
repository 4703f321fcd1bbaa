# maxpulse_backend/core/security.py

"""
Security utilities for the MaxPulse backend.
Handles JWT token creation/validation, password hashing and bearer authentication
for the function endpoints (service role key or signed JWT).
"""

import jwt
import hashlib
import hmac
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Union, Any
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .config import settings
from .logging import get_logger

logger = get_logger(__name__)

# auto_error=False so a missing header becomes our own 401 instead of FastAPI's default
security = HTTPBearer(auto_error=False)

PASSWORD_HASH_ITERATIONS = 100_000

def create_jwt_token(
    subject: Union[str, uuid.UUID],
    expires_delta_minutes: int = settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    token_type: str = "access_token",
    extra_claims: Optional[Dict[str, Any]] = None
) -> str:
    """
    Create a JWT token for the given subject

    Args:
        subject: Value stored in the "sub" claim (user or distributor id, email)
        expires_delta_minutes: Token expiration time in minutes
        token_type: Value of the "type" claim
        extra_claims: Additional claims, e.g. {"role": "admin"}

    Returns:
        The encoded JWT token
    """
    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": str(subject),
        "exp": now + timedelta(minutes=expires_delta_minutes),
        "iat": now,
        "type": token_type
    }
    if extra_claims:
        to_encode.update(extra_claims)

    encoded_jwt = jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )

    logger.debug(f"✅ JWT token created ({token_type}) for: {str(subject)[:8]}...")
    return encoded_jwt

def decode_jwt_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT token

    Raises:
        HTTPException: If the token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError:
        logger.warning("❌ Token expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired"
        )
    except jwt.InvalidTokenError as e:
        logger.warning(f"❌ Invalid token format: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )

    if payload.get("sub") is None:
        logger.warning("❌ Invalid token: missing subject")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing subject"
        )

    return payload

def hash_password(password: str, salt: Optional[str] = None) -> str:
    """
    Hash a password with PBKDF2-SHA256.

    Returns:
        "salt$hexdigest"
    """
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), salt.encode(), PASSWORD_HASH_ITERATIONS
    ).hex()
    return f"{salt}${digest}"

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash produced by hash_password
    """
    if not hashed_password or "$" not in hashed_password:
        return False
    salt, _ = hashed_password.split("$", 1)
    return hmac.compare_digest(hash_password(plain_password, salt), hashed_password)

def is_service_token(token: str) -> bool:
    """True when the token is the configured service role key"""
    return bool(settings.SERVICE_ROLE_KEY) and hmac.compare_digest(
        token.encode(), settings.SERVICE_ROLE_KEY.encode()
    )

async def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Dict[str, Any]:
    """
    FastAPI dependency resolving the bearer token into a caller description.

    Returns:
        {"sub": ..., "role": "service" | "admin" | "distributor" | ...}

    Raises:
        HTTPException: 401 if the token is missing or invalid
    """
    if not credentials or not credentials.credentials:
        logger.warning("❌ No credentials provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No authentication credentials provided"
        )

    token = credentials.credentials

    if is_service_token(token):
        return {"sub": "service_role", "role": "service"}

    payload = decode_jwt_token(token)
    if payload.get("type") != "access_token":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )
    return {"sub": payload["sub"], "role": payload.get("role", "distributor")}
