# maxpulse_backend/api/dashboard.py
"""
Dashboard endpoints: distributor stats, commission lists and admin approval.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from maxpulse_backend.core.dependencies import (
    require_caller,
    check_admin_access,
    ensure_distributor_access,
    get_accessible_distributor,
)
from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.db.session import get_db
from maxpulse_backend.schemas.commission import BulkApproveData
from maxpulse_backend.services.commission_service import CommissionService
from maxpulse_backend.services.dashboard_service import DashboardService
from maxpulse_backend.services.purchase_service import PurchaseService
from maxpulse_backend.utils.helpers import parse_uuid

logger = get_logger(__name__)

router = APIRouter()

@router.get("/products")
async def get_products(db: Session = Depends(get_db)):
    """
    Product catalog with commission rates
    """
    return {"products": PurchaseService.get_product_catalog(db)}

@router.get("/distributors/{distributor_id}/stats")
async def get_distributor_stats(
    distributor_id: str,
    period: Optional[int] = Query(None, ge=1, le=365, description="Window in days; all-time when omitted"),
    caller: Dict[str, Any] = Depends(require_caller),
    db: Session = Depends(get_db)
):
    """
    Stats by distributor UUID or distributor code
    """
    distributor = get_accessible_distributor(db, caller, distributor_id)
    return await DashboardService.get_distributor_stats(db, distributor.id, period)

@router.get("/distributors/{distributor_id}/commissions")
async def get_distributor_commissions(
    distributor_id: str,
    status: Optional[str] = Query(None, pattern="^(pending|approved)$"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    caller: Dict[str, Any] = Depends(require_caller),
    db: Session = Depends(get_db)
):
    ensure_distributor_access(caller, distributor_id)
    return await DashboardService.list_commissions(
        db, parse_uuid(distributor_id, "distributor ID"), status, skip, limit
    )

@router.get("/admin/commissions")
async def get_all_commissions(
    status: Optional[str] = Query("pending", pattern="^(pending|approved)$"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    caller: Dict[str, Any] = Depends(check_admin_access),
    db: Session = Depends(get_db)
):
    """
    Commissions across all distributors, pending first by default
    """
    return await DashboardService.list_commissions(db, None, status, skip, limit)

@router.get("/admin/commissions/summary")
async def get_commission_summary(
    caller: Dict[str, Any] = Depends(check_admin_access),
    db: Session = Depends(get_db)
):
    return await DashboardService.get_commission_summary(db)

@router.post("/admin/commissions/bulk-approve")
async def bulk_approve_commissions(
    request: BulkApproveData,
    caller: Dict[str, Any] = Depends(check_admin_access),
    db: Session = Depends(get_db)
):
    """
    Approve several commissions; failures are reported per id
    """
    return await CommissionService.bulk_approve_commissions(
        db, request.commission_ids, request.approved_by or caller.get("sub")
    )
