# maxpulse_backend/api/functions.py
"""
Function endpoints for the MaxPulse backend.

POST /api/functions/commission-processor   {type, data} envelope
POST /api/functions/create-auth-user       account for an activation code customer

Every failure is returned as {"success": false, "error": "..."}.
"""

from typing import Any, Awaitable, Callable, Dict, Tuple, Type

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from maxpulse_backend.core.dependencies import require_caller, ensure_distributor_access, ADMIN_ROLES
from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.db.session import get_db
from maxpulse_backend.schemas.commission import (
    FunctionEnvelope,
    ProcessPurchaseData,
    CalculateCommissionData,
    ApproveCommissionData,
    WithdrawalData,
    ValidateDistributorData,
)
from maxpulse_backend.schemas.auth_user import CreateAuthUserRequest
from maxpulse_backend.services.auth_user_service import AuthUserService, DuplicateAccountError
from maxpulse_backend.services.commission_service import CommissionService
from maxpulse_backend.services.purchase_service import PurchaseService
from maxpulse_backend.utils.error_handling import error_response

logger = get_logger(__name__)

router = APIRouter()

Handler = Callable[[Session, Any, Dict[str, Any]], Awaitable[Dict[str, Any]]]


async def _process_purchase(db: Session, data: ProcessPurchaseData, caller: Dict[str, Any]):
    return await PurchaseService.process_purchase(db, data)


async def _calculate_commission(db: Session, data: CalculateCommissionData, caller: Dict[str, Any]):
    ensure_distributor_access(caller, data.distributor_id)
    return await CommissionService.calculate_commission(db, data)


async def _approve_commission(db: Session, data: ApproveCommissionData, caller: Dict[str, Any]):
    if caller.get("role") not in ADMIN_ROLES:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Admin access required")
    approved_by = data.approved_by or caller.get("sub")
    return await CommissionService.approve_commission(db, data.commission_id, approved_by)


async def _process_withdrawal(db: Session, data: WithdrawalData, caller: Dict[str, Any]):
    ensure_distributor_access(caller, data.distributor_id)
    return await CommissionService.process_withdrawal(db, data)


async def _validate_distributor(db: Session, data: ValidateDistributorData, caller: Dict[str, Any]):
    return await CommissionService.validate_distributor(db, data.distributor_code)


OPERATIONS: Dict[str, Tuple[Type[BaseModel], Handler]] = {
    "process_purchase": (ProcessPurchaseData, _process_purchase),
    "calculate_commission": (CalculateCommissionData, _calculate_commission),
    "approve_commission": (ApproveCommissionData, _approve_commission),
    "process_withdrawal": (WithdrawalData, _process_withdrawal),
    "validate_distributor": (ValidateDistributorData, _validate_distributor),
}


def parse_operation_data(schema: Type[BaseModel], data: Dict[str, Any]) -> BaseModel:
    """
    Validate envelope data against the operation schema.

    Raises:
        HTTPException: 400 naming the first invalid field
    """
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ())) or "data"
        raise HTTPException(status.HTTP_400_BAD_REQUEST, f"Invalid {field}: {error.get('msg')}")


@router.post("/commission-processor")
async def commission_processor(
    envelope: FunctionEnvelope,
    caller: Dict[str, Any] = Depends(require_caller),
    db: Session = Depends(get_db)
):
    """
    Dispatch a commission operation by type
    """
    operation = OPERATIONS.get(envelope.type)
    if operation is None:
        logger.warning(f"❌ Unknown commission operation: {envelope.type}")
        raise HTTPException(status.HTTP_400_BAD_REQUEST, f"Unknown operation type: {envelope.type}")

    schema, handler = operation
    data = parse_operation_data(schema, envelope.data)

    logger.info(f"🔄 Commission operation '{envelope.type}' requested by {caller.get('sub')}")
    return await handler(db, data, caller)


@router.post("/create-auth-user")
async def create_auth_user(
    request: CreateAuthUserRequest,
    caller: Dict[str, Any] = Depends(require_caller),
    db: Session = Depends(get_db)
):
    """
    Create an app account with a temporary password for an activation code customer
    """
    try:
        return await AuthUserService.create_auth_user(db, request)
    except DuplicateAccountError as e:
        return error_response(status.HTTP_409_CONFLICT, str(e), passwordResetSent=e.password_reset_sent)
