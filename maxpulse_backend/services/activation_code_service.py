# maxpulse_backend/services/activation_code_service.py
"""
Activation code service for the MaxPulse backend.

Codes are 8 characters from an alphabet without look-alike characters
(no I, L, O, 0 or 1). A code is single use: pending -> activated, or revoked.
"""

import re
import secrets
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from maxpulse_backend.core.config import settings
from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.models.activation_code import ActivationCode
from maxpulse_backend.models.base import utcnow, ensure_aware
from maxpulse_backend.models.commission import Commission, LedgerTransaction
from maxpulse_backend.schemas.activation import GenerateCodeRequest
from maxpulse_backend.services.commission_calculator import calculate_commission_amount
from maxpulse_backend.services.commission_service import CommissionService
from maxpulse_backend.utils.error_handling import handle_exception
from maxpulse_backend.utils.helpers import quantize_money

logger = get_logger(__name__)

CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 8
CODE_PATTERN = re.compile(rf"^[{CODE_ALPHABET}]{{{CODE_LENGTH}}}$")
MAX_GENERATION_ATTEMPTS = 10

# Commission percent paid on activation code sales, by plan
ACTIVATION_COMMISSION_RATES = {
    "annual": Decimal("50"),
    "monthly": Decimal("40"),
}

# Validation failures -> HTTP status when raised from activate()
INVALID_CODE_STATUS = {
    "Invalid code format": status.HTTP_400_BAD_REQUEST,
    "Activation code not found": status.HTTP_404_NOT_FOUND,
    "Activation code has expired": status.HTTP_410_GONE,
    "Activation code has already been used": status.HTTP_409_CONFLICT,
    "Activation code has been revoked": status.HTTP_409_CONFLICT,
}


def generate_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def is_valid_code_format(code: Optional[str]) -> bool:
    return bool(CODE_PATTERN.match(normalize_code(code)))


class ActivationCodeService:
    """Activation code lifecycle and the activation commission backfill"""

    @staticmethod
    def _generate_unique_code(db: Session) -> str:
        for attempt in range(1, MAX_GENERATION_ATTEMPTS + 1):
            code = generate_code()
            if not db.query(ActivationCode.id).filter(ActivationCode.code == code).first():
                return code
            logger.warning(f"⚠️ Code collision detected (attempt {attempt}/{MAX_GENERATION_ATTEMPTS}), regenerating...")

        raise RuntimeError("Failed to generate unique activation code after multiple attempts")

    @staticmethod
    def plan_price(plan_type: str) -> Decimal:
        price = settings.ACTIVATION_ANNUAL_PRICE if plan_type == "annual" else settings.ACTIVATION_MONTHLY_PRICE
        return quantize_money(price)

    @staticmethod
    async def generate(db: Session, request: GenerateCodeRequest) -> Dict[str, Any]:
        """
        Create a pending activation code valid for ACTIVATION_CODE_TTL_DAYS.
        """
        distributor = CommissionService.find_distributor(db, request.distributor_id)
        if request.distributor_id and not distributor:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Invalid distributor ID")

        try:
            activation_code = ActivationCode(
                code=ActivationCodeService._generate_unique_code(db),
                distributor_id=distributor.id if distributor else None,
                session_id=request.session_id,
                customer_name=request.customer_name,
                customer_email=str(request.customer_email).lower(),
                assessment_type=request.assessment_type,
                plan_type=request.plan_type,
                purchase_amount=ActivationCodeService.plan_price(request.plan_type),
                status="pending",
                expires_at=utcnow() + timedelta(days=settings.ACTIVATION_CODE_TTL_DAYS)
            )
            db.add(activation_code)
            db.commit()
            db.refresh(activation_code)
        except Exception as e:
            db.rollback()
            raise handle_exception(e, "Error generating activation code", detail="Failed to generate activation code")

        logger.info(f"✅ Activation code generated: {activation_code.code} (session {request.session_id})")
        return {"success": True, "code": activation_code.code, "activation_code": activation_code.to_dict()}

    @staticmethod
    def _check(activation_code: Optional[ActivationCode]) -> Optional[str]:
        """Reason the code cannot be used, or None"""
        if activation_code is None:
            return "Activation code not found"
        if activation_code.status == "activated":
            return "Activation code has already been used"
        if activation_code.status == "revoked":
            return "Activation code has been revoked"
        if activation_code.status == "expired" or ensure_aware(activation_code.expires_at) < utcnow():
            return "Activation code has expired"
        return None

    @staticmethod
    async def validate(db: Session, code: str) -> Dict[str, Any]:
        """
        Report whether a code can be activated. Read only.
        """
        code = normalize_code(code)
        if not is_valid_code_format(code):
            return {"valid": False, "reason": "Invalid code format"}

        activation_code = db.query(ActivationCode).filter(ActivationCode.code == code).first()
        reason = ActivationCodeService._check(activation_code)
        if reason:
            return {"valid": False, "reason": reason}

        return {
            "valid": True,
            "customerName": activation_code.customer_name,
            "planType": activation_code.plan_type,
            "assessmentType": activation_code.assessment_type,
        }

    @staticmethod
    async def activate(db: Session, code: str) -> Dict[str, Any]:
        """
        Mark a valid code activated and return its data.
        """
        code = normalize_code(code)
        if not is_valid_code_format(code):
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Invalid code format")

        try:
            activation_code = db.query(ActivationCode).filter(
                ActivationCode.code == code
            ).with_for_update().first()

            reason = ActivationCodeService._check(activation_code)
            if reason:
                raise HTTPException(INVALID_CODE_STATUS[reason], reason)

            activation_code.status = "activated"
            activation_code.activated_at = utcnow()
            db.commit()
            db.refresh(activation_code)
        except HTTPException:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise handle_exception(e, "Error activating code", detail="Failed to activate code")

        logger.info(f"✅ Activation code {code} activated")
        return {"success": True, "activation_code": activation_code.to_dict()}

    @staticmethod
    async def revoke(db: Session, code: str) -> Dict[str, Any]:
        code = normalize_code(code)
        activation_code = db.query(ActivationCode).filter(ActivationCode.code == code).with_for_update().first()

        if not activation_code:
            db.rollback()
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Activation code not found")
        if activation_code.status == "activated":
            db.rollback()
            raise HTTPException(status.HTTP_409_CONFLICT, "Activation code has already been used")

        activation_code.status = "revoked"
        db.commit()

        logger.info(f"🚫 Activation code {code} revoked")
        return {"success": True, "activation_code": activation_code.to_dict()}

    @staticmethod
    def backfill_activation_commissions(db: Session) -> Dict[str, int]:
        """
        Create one pending commission per activation code that has none yet.

        Idempotent on session_id: a code whose session already has a
        commission is skipped, so repeated runs create no duplicates.
        """
        activation_codes = db.query(ActivationCode).filter(
            ActivationCode.distributor_id.isnot(None)
        ).order_by(ActivationCode.created_at.asc()).all()

        existing_sessions = {
            session_id for (session_id,) in db.query(Commission.session_id).filter(
                Commission.session_id.isnot(None)
            ).all()
        }

        summary = {"total": len(activation_codes), "created": 0, "skipped": 0, "errors": 0}
        logger.info(f"🔄 Backfill: {len(activation_codes)} activation code(s), {len(existing_sessions)} session(s) with commissions")

        for activation_code in activation_codes:
            if not activation_code.session_id or activation_code.session_id in existing_sessions:
                logger.info(f"⏭️ Skipping {activation_code.code} - commission already exists or no session")
                summary["skipped"] += 1
                continue

            rate = ACTIVATION_COMMISSION_RATES.get(activation_code.plan_type, ACTIVATION_COMMISSION_RATES["monthly"])
            sale_amount = (
                quantize_money(activation_code.purchase_amount)
                if activation_code.purchase_amount is not None
                else ActivationCodeService.plan_price(activation_code.plan_type)
            )
            commission_amount = calculate_commission_amount(sale_amount, rate)

            try:
                commission = Commission(
                    distributor_id=activation_code.distributor_id,
                    product_name=f"MAXPULSE App ({activation_code.plan_type})",
                    product_type="app",
                    client_name=activation_code.customer_name,
                    client_email=activation_code.customer_email,
                    sale_amount=sale_amount,
                    commission_rate=rate,
                    commission_amount=commission_amount,
                    status="pending",
                    session_id=activation_code.session_id,
                    created_at=activation_code.created_at,
                    updated_at=activation_code.created_at
                )
                db.add(commission)
                db.flush()
                db.add(LedgerTransaction(
                    distributor_id=activation_code.distributor_id,
                    transaction_type="commission_earned",
                    amount=commission_amount,
                    status="pending",
                    reference_id=commission.id,
                    description=f"Activation code {activation_code.code}",
                    created_at=activation_code.created_at
                ))
                db.commit()
            except Exception as e:
                db.rollback()
                logger.error(f"❌ Failed to create commission for {activation_code.code}: {e}")
                summary["errors"] += 1
                continue

            existing_sessions.add(activation_code.session_id)
            summary["created"] += 1
            logger.info(f"✅ Created commission for {activation_code.code} (${commission_amount:.2f})")

        logger.info(
            f"📊 Backfill summary: created={summary['created']}, "
            f"skipped={summary['skipped']}, errors={summary['errors']}"
        )
        return summary
