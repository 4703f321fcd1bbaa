# maxpulse_backend/services/commission_service.py
"""
Commission service for the MaxPulse backend.
Calculation, approval, withdrawal and distributor validation.

Approval and withdrawal each run as a single database transaction.
The rows they depend on are locked with SELECT ... FOR UPDATE, so two
concurrent withdrawals for one distributor are serialised on the
distributor row and cannot both pass the balance check.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Union
import uuid

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from maxpulse_backend.core.logging import get_logger, get_context_logger
from maxpulse_backend.models.base import utcnow
from maxpulse_backend.models.distributor import Distributor
from maxpulse_backend.models.commission import Commission, LedgerTransaction, Withdrawal
from maxpulse_backend.models.system import SystemLog
from maxpulse_backend.schemas.commission import (
    CalculateCommissionData,
    WithdrawalData,
)
from maxpulse_backend.services.commission_calculator import (
    calculate_commission,
    validate_commission_input,
    validate_commission_rules,
)
from maxpulse_backend.services.realtime_service import (
    RealtimeService,
    COMMISSION_UPDATES,
    ADMIN_NOTIFICATIONS,
)
from maxpulse_backend.services.telegram_notification import TelegramNotificationService
from maxpulse_backend.utils.error_handling import handle_exception
from maxpulse_backend.utils.helpers import parse_uuid, quantize_money, quantize_rate, to_decimal
from maxpulse_backend.utils.validators import validate_uuid

logger = get_logger(__name__)

# Withdrawals in these states no longer hold funds
RELEASED_WITHDRAWAL_STATUSES = ("rejected", "cancelled")


class CommissionService:
    """Commission bookkeeping operations"""

    @staticmethod
    def log_commission_activity(
        db: Session,
        distributor_id: Union[str, uuid.UUID, None],
        activity: str,
        details: Dict[str, Any]
    ) -> None:
        """
        Append an audit entry to system_logs. Never fails the caller.
        """
        try:
            db.add(SystemLog(
                log_type="commission_activity",
                distributor_id=parse_uuid(distributor_id) if distributor_id else None,
                message=f"Commission activity: {activity}",
                details={"activity": activity, **details}
            ))
            db.commit()
        except (SQLAlchemyError, HTTPException) as e:
            db.rollback()
            logger.warning(f"⚠️ Failed to log commission activity '{activity}': {e}")

    @staticmethod
    def find_distributor(db: Session, distributor_ref: Optional[str]) -> Optional[Distributor]:
        """Accepts a distributor UUID or a distributor code"""
        if not distributor_ref or not str(distributor_ref).strip():
            return None

        is_uuid, _ = validate_uuid(distributor_ref)
        if is_uuid:
            return db.query(Distributor).filter(Distributor.id == uuid.UUID(str(distributor_ref))).first()

        return db.query(Distributor).filter(
            Distributor.distributor_code == str(distributor_ref).strip().upper()
        ).first()

    @staticmethod
    def get_available_balance(db: Session, distributor_id: uuid.UUID) -> Decimal:
        """
        Approved commissions minus withdrawals that still hold funds.
        """
        approved = db.query(func.coalesce(func.sum(Commission.commission_amount), 0)).filter(
            Commission.distributor_id == distributor_id,
            Commission.status == "approved"
        ).scalar()

        withdrawn = db.query(func.coalesce(func.sum(Withdrawal.amount), 0)).filter(
            Withdrawal.distributor_id == distributor_id,
            Withdrawal.status.notin_(RELEASED_WITHDRAWAL_STATUSES)
        ).scalar()

        return quantize_money(to_decimal(approved) - to_decimal(withdrawn))

    @staticmethod
    async def calculate_commission(db: Session, data: CalculateCommissionData) -> Dict[str, Any]:
        """
        Compute the commission a distributor would earn on a sale, without persisting anything.
        """
        try:
            validate_commission_input(
                data.model_dump(),
                amount_field="sale_amount",
                rate_field="commission_rate" if data.commission_rate is not None else None,
                email_field=None
            )
            validate_commission_rules(data.sale_amount, 0)
        except ValueError as e:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, str(e))

        distributor = db.query(Distributor).filter(
            Distributor.id == parse_uuid(data.distributor_id, "distributorId")
        ).first()

        if not distributor or not distributor.is_active:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Distributor not found or inactive")

        base_rate = (
            quantize_rate(data.commission_rate) if data.commission_rate is not None
            else distributor.commission_rate
        )
        breakdown = calculate_commission(
            data.sale_amount,
            base_rate,
            distributor.tier_level,
            data.product_type
        )

        logger.info(
            f"🧮 Commission calculated for {distributor.distributor_code}: "
            f"{breakdown['sale_amount']} @ {breakdown['effective_rate']}% = {breakdown['commission_amount']}"
        )

        return {
            "success": True,
            "commission": {
                "saleAmount": float(breakdown["sale_amount"]),
                "baseRate": float(breakdown["base_rate"]),
                "tierBonus": float(breakdown["tier_bonus"]),
                "productBonus": float(breakdown["product_bonus"]),
                "effectiveRate": float(breakdown["effective_rate"]),
                "tierLevel": distributor.tier_level,
                "productType": data.product_type,
                "commissionAmount": float(breakdown["commission_amount"]),
            }
        }

    @staticmethod
    async def approve_commission(db: Session, commission_id: str, approved_by: str) -> Dict[str, Any]:
        """
        pending -> approved.

        In one transaction: mark the commission approved, complete its ledger
        transaction and add the amount to the distributor's running total.
        """
        commission_uuid = parse_uuid(commission_id, "commissionId")
        log = get_context_logger(__name__, {"commission_id": str(commission_uuid)})

        try:
            commission = db.query(Commission).filter(
                Commission.id == commission_uuid
            ).with_for_update().first()

            if not commission:
                raise HTTPException(status.HTTP_404_NOT_FOUND, "Commission not found")

            if commission.status != "pending":
                raise HTTPException(status.HTTP_409_CONFLICT, f"Commission is already {commission.status}")

            distributor = db.query(Distributor).filter(
                Distributor.id == commission.distributor_id
            ).with_for_update().first()

            if not distributor:
                raise HTTPException(status.HTTP_404_NOT_FOUND, "Distributor not found")

            now = utcnow()
            commission.status = "approved"
            commission.approved_by = approved_by
            commission.approved_at = now

            db.query(LedgerTransaction).filter(
                LedgerTransaction.reference_id == commission.id,
                LedgerTransaction.transaction_type == "commission_earned"
            ).update({"status": "completed", "updated_at": now}, synchronize_session=False)

            distributor.total_commissions = quantize_money(
                to_decimal(distributor.total_commissions or 0) + to_decimal(commission.commission_amount)
            )

            db.commit()
            db.refresh(commission)

        except HTTPException:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise handle_exception(e, "Error approving commission", detail="Failed to approve commission")

        log.info(f"✅ Commission approved by {approved_by}: {commission.commission_amount}")

        result = commission.to_dict()
        await RealtimeService.broadcast(COMMISSION_UPDATES, "commission_approved", result, db)
        CommissionService.log_commission_activity(db, commission.distributor_id, "commission_approved", {
            "commission_id": result["id"],
            "amount": result["commission_amount"],
            "approved_by": approved_by,
        })

        return {"success": True, "commission": result}

    @staticmethod
    async def bulk_approve_commissions(
        db: Session,
        commission_ids: List[str],
        approved_by: str
    ) -> Dict[str, Any]:
        """
        Approve commissions one by one; a failure on one id does not stop the rest.
        """
        approved, failed = [], []

        for commission_id in commission_ids:
            try:
                result = await CommissionService.approve_commission(db, commission_id, approved_by)
                approved.append(result["commission"]["id"])
            except HTTPException as e:
                failed.append({"id": commission_id, "error": e.detail})

        logger.info(f"📋 Bulk approval by {approved_by}: {len(approved)} approved, {len(failed)} failed")

        return {"success": not failed, "approved": approved, "failed": failed}

    @staticmethod
    async def process_withdrawal(db: Session, data: WithdrawalData) -> Dict[str, Any]:
        """
        Check the balance and record a pending withdrawal plus its negative ledger line.
        """
        distributor_uuid = parse_uuid(data.distributor_id, "distributorId")
        log = get_context_logger(__name__, {"distributor_id": str(distributor_uuid)})

        try:
            amount = quantize_money(data.amount)
        except ArithmeticError:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Withdrawal amount must be a number")

        if not amount.is_finite() or amount <= 0:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Withdrawal amount must be greater than 0")
        if not data.withdrawal_method or not data.withdrawal_method.strip():
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Withdrawal method is required")

        try:
            # Serialises concurrent withdrawals for this distributor
            distributor = db.query(Distributor).filter(
                Distributor.id == distributor_uuid
            ).with_for_update().first()

            if not distributor:
                raise HTTPException(status.HTTP_404_NOT_FOUND, "Distributor not found")

            balance = CommissionService.get_available_balance(db, distributor.id)

            if amount > balance:
                log.warning(f"❌ Insufficient balance: available {balance}, requested {amount}")
                raise HTTPException(
                    status.HTTP_400_BAD_REQUEST,
                    f"Insufficient balance. Available: ${balance:.2f}, Requested: ${amount:.2f}"
                )

            withdrawal = Withdrawal(
                distributor_id=distributor.id,
                amount=amount,
                withdrawal_method=data.withdrawal_method,
                payment_details=data.payment_details or {},
                status="pending"
            )
            db.add(withdrawal)
            db.flush()

            db.add(LedgerTransaction(
                distributor_id=distributor.id,
                transaction_type="withdrawal_request",
                amount=-amount,
                status="pending",
                reference_id=withdrawal.id,
                description=f"Withdrawal request via {data.withdrawal_method}"
            ))

            db.commit()
            db.refresh(withdrawal)

        except HTTPException:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise handle_exception(e, "Error processing withdrawal", detail="Failed to process withdrawal")

        new_balance = balance - amount
        log.info(f"💸 Withdrawal requested: {amount} via {data.withdrawal_method}, new balance {new_balance}")

        result = withdrawal.to_dict()
        await RealtimeService.broadcast(ADMIN_NOTIFICATIONS, "withdrawal_requested", {
            "withdrawal": result,
            "distributor_code": distributor.distributor_code,
            "new_balance": float(new_balance),
        }, db)

        alert = await TelegramNotificationService.send_withdrawal_alert(
            distributor.distributor_code,
            distributor.name,
            amount,
            data.withdrawal_method,
            new_balance
        )
        if not alert["success"]:
            log.debug(f"Telegram alert not sent: {alert['error']}")

        CommissionService.log_commission_activity(db, distributor.id, "withdrawal_requested", {
            "withdrawal_id": result["id"],
            "amount": float(amount),
            "method": data.withdrawal_method,
        })

        return {"success": True, "withdrawal": result, "newBalance": float(new_balance)}

    @staticmethod
    async def validate_distributor(db: Session, distributor_code: str) -> Dict[str, Any]:
        """
        Look up an active distributor by code.
        """
        code = (distributor_code or "").strip().upper()
        if not code:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Distributor code is required")

        distributor = db.query(Distributor).filter(
            Distributor.distributor_code == code,
            Distributor.status == "active"
        ).first()

        if not distributor:
            logger.warning(f"❌ Invalid distributor code: {code}")
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Invalid distributor code")

        return {
            "success": True,
            "valid": True,
            "distributor": {
                "id": str(distributor.id),
                "code": distributor.distributor_code,
                "commissionRate": float(distributor.commission_rate),
                "tierLevel": distributor.tier_level,
                "name": distributor.name,
                "phone": distributor.phone,
            }
        }
