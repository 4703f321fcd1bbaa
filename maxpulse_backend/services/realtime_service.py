# maxpulse_backend/services/realtime_service.py
"""
Realtime fan-out for dashboard updates.

A broadcast goes out over three independent channels:
    1. in-process pub/sub (asyncio queues feeding /ws/realtime/{channel})
    2. webhook POST to REALTIME_WEBHOOK_URL, when configured
    3. a persisted RealtimeEvent row for polling clients

Delivery is best effort: each channel fails on its own, failures are logged
and never reach the caller.
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

import aiohttp
from sqlalchemy.orm import Session

from maxpulse_backend.core.config import settings
from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.models.base import utcnow, ensure_aware
from maxpulse_backend.models.system import RealtimeEvent

logger = get_logger(__name__)

# Channel names used across the services
COMMISSION_UPDATES = "commission_updates"
ADMIN_NOTIFICATIONS = "admin_notifications"
CONVERSION_UPDATES = "conversion_updates"


class RealtimeService:
    """Best-effort broadcaster"""

    _subscribers: Dict[str, Set[asyncio.Queue]] = {}
    QUEUE_SIZE = 100

    @classmethod
    def subscribe(cls, channel: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=cls.QUEUE_SIZE)
        cls._subscribers.setdefault(channel, set()).add(queue)
        logger.debug(f"[REALTIME] Subscriber added to '{channel}' ({len(cls._subscribers[channel])} total)")
        return queue

    @classmethod
    def unsubscribe(cls, channel: str, queue: asyncio.Queue) -> None:
        subscribers = cls._subscribers.get(channel)
        if subscribers is not None:
            subscribers.discard(queue)
            if not subscribers:
                cls._subscribers.pop(channel, None)

    @classmethod
    def subscriber_count(cls, channel: str) -> int:
        return len(cls._subscribers.get(channel, ()))

    @staticmethod
    def build_message(channel: str, event: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "channel": channel,
            "event": event,
            "payload": payload,
            "timestamp": utcnow().isoformat(),
        }

    @classmethod
    def _publish_local(cls, channel: str, message: Dict[str, Any]) -> int:
        """Push to every local subscriber; a full queue drops the message for that subscriber"""
        delivered = 0
        for queue in list(cls._subscribers.get(channel, ())):
            try:
                queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(f"[REALTIME] ⚠️ Subscriber queue full on '{channel}', message dropped")
        return delivered

    @staticmethod
    async def _post_webhook(message: Dict[str, Any]) -> bool:
        if not settings.REALTIME_WEBHOOK_URL:
            return False

        async with aiohttp.ClientSession() as session:
            async with session.post(
                settings.REALTIME_WEBHOOK_URL,
                json=message,
                timeout=aiohttp.ClientTimeout(total=settings.REALTIME_WEBHOOK_TIMEOUT)
            ) as response:
                if response.status >= 400:
                    raise RuntimeError(f"Webhook responded with HTTP {response.status}")
                return True

    @staticmethod
    def _persist(db: Session, channel: str, event: str, payload: Dict[str, Any]) -> bool:
        db.add(RealtimeEvent(channel=channel, event=event, payload=payload))
        db.commit()
        return True

    @classmethod
    async def broadcast(
        cls,
        channel: str,
        event: str,
        payload: Dict[str, Any],
        db: Optional[Session] = None
    ) -> Dict[str, bool]:
        """
        Fan a message out over every channel.

        Returns:
            Per-channel delivery flags: {"pubsub", "webhook", "polling"}
        """
        message = cls.build_message(channel, event, payload)
        results = {"pubsub": False, "webhook": False, "polling": False}

        try:
            results["pubsub"] = cls._publish_local(channel, message) > 0
        except Exception as e:
            logger.warning(f"[REALTIME] ⚠️ Pub/sub delivery failed for {channel}/{event}: {e}")

        try:
            results["webhook"] = await cls._post_webhook(message)
        except (aiohttp.ClientError, asyncio.TimeoutError, RuntimeError) as e:
            logger.warning(f"[REALTIME] ⚠️ Webhook delivery failed for {channel}/{event}: {e}")

        if db is not None:
            try:
                results["polling"] = cls._persist(db, channel, event, payload)
            except Exception as e:
                db.rollback()
                logger.warning(f"[REALTIME] ⚠️ Could not persist {channel}/{event}: {e}")

        logger.info(f"[REALTIME] 📡 {channel}/{event} delivered: {results}")
        return results

    @staticmethod
    def get_events(
        db: Session,
        channel: str,
        since: Optional[datetime] = None,
        limit: int = 50
    ) -> List[Dict[str, Any]]:
        """
        Events on a channel newer than `since`, oldest first
        """
        query = db.query(RealtimeEvent).filter(RealtimeEvent.channel == channel)
        if since is not None:
            query = query.filter(RealtimeEvent.created_at > ensure_aware(since))

        events = query.order_by(RealtimeEvent.created_at.asc()).limit(limit).all()
        return [event.to_dict() for event in events]
