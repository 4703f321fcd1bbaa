# maxpulse_backend/api/links.py
"""
Assessment link endpoints.
Validation and click tracking are called from the public assessment page and need no token.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from maxpulse_backend.core.dependencies import (
    require_caller,
    ensure_distributor_access,
    get_accessible_distributor,
)
from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.db.session import get_db
from maxpulse_backend.schemas.link import (
    CreateLinkRequest,
    TrackClickRequest,
    TrackConversionRequest,
    VisitorInfo,
)
from maxpulse_backend.services.link_tracking_service import LinkTrackingService

logger = get_logger(__name__)

router = APIRouter()

def visitor_from_request(request: Request, info: Optional[VisitorInfo]) -> VisitorInfo:
    """Body values win; the client address and headers fill what is missing"""
    info = info or VisitorInfo()
    user_agent = info.user_agent or request.headers.get("user-agent")
    referrer = info.referrer or request.headers.get("referer")
    return VisitorInfo(
        ip=info.ip or (request.client.host if request.client else None),
        user_agent=user_agent[:500] if user_agent else None,
        referrer=referrer[:500] if referrer else None
    )

@router.post("")
async def create_link(
    request: CreateLinkRequest,
    caller: Dict[str, Any] = Depends(require_caller),
    db: Session = Depends(get_db)
):
    """
    Create a tracking link for a distributor campaign
    """
    distributor = get_accessible_distributor(db, caller, request.distributor_id)
    return await LinkTrackingService.create_link(db, distributor, request)

@router.get("/distributors/{distributor_id}/analytics")
async def get_link_analytics(
    distributor_id: str,
    period: Optional[int] = Query(None, ge=1, le=365, description="Only count events from the last N days"),
    caller: Dict[str, Any] = Depends(require_caller),
    db: Session = Depends(get_db)
):
    distributor = get_accessible_distributor(db, caller, distributor_id)
    return await LinkTrackingService.get_analytics(db, distributor, period)

@router.get("/{link_code}")
async def validate_link(link_code: str, db: Session = Depends(get_db)):
    """
    Link and distributor details; 410 once the link is deactivated
    """
    return await LinkTrackingService.validate_link(db, link_code)

@router.post("/{link_code}/click")
async def track_click(
    link_code: str,
    http_request: Request,
    request: Optional[TrackClickRequest] = None,
    db: Session = Depends(get_db)
):
    request = request or TrackClickRequest()
    return await LinkTrackingService.track_click(
        db, link_code, visitor_from_request(http_request, request.visitor_info), request.session_id
    )

@router.post("/{link_code}/conversion")
async def track_conversion(
    link_code: str,
    http_request: Request,
    request: TrackConversionRequest,
    caller: Dict[str, Any] = Depends(require_caller),
    db: Session = Depends(get_db)
):
    """
    Record a completed assessment or purchase that came through the link
    """
    return await LinkTrackingService.track_conversion(
        db,
        link_code,
        visitor_from_request(http_request, request.visitor_info),
        request.conversion_value,
        request.session_id
    )

@router.post("/{link_code}/deactivate")
async def deactivate_link(
    link_code: str,
    caller: Dict[str, Any] = Depends(require_caller),
    db: Session = Depends(get_db)
):
    link = LinkTrackingService.get_link(db, link_code)
    ensure_distributor_access(caller, str(link.distributor_id))
    return await LinkTrackingService.deactivate_link(db, link)
