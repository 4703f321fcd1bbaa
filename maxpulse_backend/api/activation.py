# maxpulse_backend/api/activation.py
"""
Activation code endpoints.
Validation and activation are called by the app before sign-in and need no token.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from maxpulse_backend.core.dependencies import require_caller, check_admin_access
from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.db.session import get_db
from maxpulse_backend.schemas.activation import GenerateCodeRequest, CodeRequest
from maxpulse_backend.services.activation_code_service import ActivationCodeService

logger = get_logger(__name__)

router = APIRouter()

@router.post("")
async def generate_activation_code(
    request: GenerateCodeRequest,
    caller: Dict[str, Any] = Depends(require_caller),
    db: Session = Depends(get_db)
):
    """
    Generate a pending activation code for a purchase or assessment session
    """
    return await ActivationCodeService.generate(db, request)

@router.post("/validate")
async def validate_activation_code(request: CodeRequest, db: Session = Depends(get_db)):
    """
    Check whether a code can be activated, without using it up
    """
    return await ActivationCodeService.validate(db, request.code)

@router.post("/activate")
async def activate_activation_code(request: CodeRequest, db: Session = Depends(get_db)):
    """
    Redeem a code (single use)
    """
    return await ActivationCodeService.activate(db, request.code)

@router.post("/{code}/revoke")
async def revoke_activation_code(
    code: str,
    caller: Dict[str, Any] = Depends(check_admin_access),
    db: Session = Depends(get_db)
):
    return await ActivationCodeService.revoke(db, code)

@router.post("/backfill-commissions")
async def backfill_activation_commissions(
    caller: Dict[str, Any] = Depends(check_admin_access),
    db: Session = Depends(get_db)
):
    """
    Create missing commissions for activation codes. Safe to run repeatedly.
    """
    summary = ActivationCodeService.backfill_activation_commissions(db)
    return {"success": summary["errors"] == 0, **summary}
