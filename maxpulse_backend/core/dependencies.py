"""
FastAPI dependencies for the MaxPulse backend.
Reusable auth checks shared by the routers.
"""

from typing import Any, Dict

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from maxpulse_backend.core.security import get_caller
from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.models.distributor import Distributor
from maxpulse_backend.services.commission_service import CommissionService

logger = get_logger(__name__)

ADMIN_ROLES = ("service", "admin")

async def require_caller(caller: Dict[str, Any] = Depends(get_caller)) -> Dict[str, Any]:
    """Any authenticated caller (service key or valid JWT)"""
    return caller

async def check_admin_access(caller: Dict[str, Any] = Depends(get_caller)) -> Dict[str, Any]:
    """
    Check that the caller may perform admin actions

    Raises:
        HTTPException: 403 for non-admin callers
    """
    if caller.get("role") not in ADMIN_ROLES:
        logger.warning(f"❌ Admin access denied for {caller.get('sub')}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return caller

def ensure_distributor_access(caller: Dict[str, Any], distributor_id: str) -> None:
    """
    Distributors may only read their own data; service and admin callers read anything.
    """
    if caller.get("role") in ADMIN_ROLES:
        return
    if str(caller.get("sub")) != str(distributor_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied"
        )

def get_accessible_distributor(db: Session, caller: Dict[str, Any], distributor_ref: str) -> Distributor:
    """
    Resolve a distributor UUID or code and check the caller may read it.

    Raises:
        HTTPException: 404 for an unknown distributor, 403 for someone else's
    """
    distributor = CommissionService.find_distributor(db, distributor_ref)
    if not distributor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Distributor not found"
        )
    ensure_distributor_access(caller, str(distributor.id))
    return distributor
