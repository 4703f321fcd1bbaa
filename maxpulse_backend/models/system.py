"""
System log and realtime event models.
"""

import uuid
from sqlalchemy import Column, String, DateTime, JSON, Text, Uuid
from sqlalchemy.sql import func

from .base import Base, BaseModel, utcnow

class SystemLog(Base, BaseModel):
    """
    Audit trail of commission activity
    """
    __tablename__ = "system_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    log_type = Column(String(50), nullable=False, index=True)
    distributor_id = Column(Uuid, nullable=True, index=True)
    message = Column(Text, nullable=False)
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)


class RealtimeEvent(Base, BaseModel):
    """
    Persisted broadcast, read back by polling clients
    """
    __tablename__ = "realtime_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    channel = Column(String(100), nullable=False, index=True)
    event = Column(String(100), nullable=False)
    payload = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)
