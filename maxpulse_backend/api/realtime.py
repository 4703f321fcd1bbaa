# maxpulse_backend/api/realtime.py
"""
Realtime delivery to dashboards: a WebSocket stream and a polling endpoint.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from maxpulse_backend.core.dependencies import require_caller
from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.core.security import is_service_token, decode_jwt_token
from maxpulse_backend.db.session import get_db
from maxpulse_backend.services.realtime_service import RealtimeService

logger = get_logger(__name__)

router = APIRouter()

# Policy violation close code
WS_POLICY_VIOLATION = 1008

def _websocket_token_valid(token: Optional[str]) -> bool:
    if not token:
        return False
    if is_service_token(token):
        return True
    try:
        decode_jwt_token(token)
        return True
    except HTTPException:
        return False

@router.websocket("/ws/realtime/{channel}")
async def realtime_websocket(websocket: WebSocket, channel: str, token: Optional[str] = Query(None)):
    """
    Stream broadcasts on a channel; authenticate with ?token=
    """
    if not _websocket_token_valid(token):
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    await websocket.accept()
    queue = RealtimeService.subscribe(channel)
    logger.info(f"[REALTIME] 🔌 WebSocket subscribed to '{channel}' ({RealtimeService.subscriber_count(channel)} listening)")

    try:
        while True:
            message = await queue.get()
            await websocket.send_json(message)
    except WebSocketDisconnect:
        logger.info(f"[REALTIME] WebSocket disconnected from '{channel}'")
    finally:
        RealtimeService.unsubscribe(channel, queue)

@router.get("/api/realtime/{channel}/events")
async def poll_realtime_events(
    channel: str,
    since: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    caller: Dict[str, Any] = Depends(require_caller),
    db: Session = Depends(get_db)
):
    """
    Events newer than `since` for clients without a WebSocket
    """
    events = RealtimeService.get_events(db, channel, since, limit)
    return {"channel": channel, "events": events}
