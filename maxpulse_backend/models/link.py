"""
Assessment link tracking models.
"""

import uuid
from sqlalchemy import Column, String, Boolean, Numeric, DateTime, Integer, ForeignKey, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base, BaseModel, utcnow

class AssessmentLink(Base, BaseModel):
    """
    Shareable assessment link a distributor hands out to prospects.
    click_count and conversion_count mirror the LinkAnalytics rows.
    """
    __tablename__ = "assessment_links"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    distributor_id = Column(Uuid, ForeignKey("distributors.id", ondelete="CASCADE"), nullable=False, index=True)

    link_code = Column(String(120), unique=True, nullable=False, index=True)
    campaign_name = Column(String(200), nullable=False)
    link_type = Column(String(20), nullable=False, default="customer")  # customer / campaign
    target_audience = Column(String(200), nullable=True)
    focus_area = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    click_count = Column(Integer, nullable=False, default=0)
    conversion_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    events = relationship("LinkAnalytics", back_populates="link", cascade="all, delete-orphan")


class LinkAnalytics(Base, BaseModel):
    """
    One click or conversion on an assessment link
    """
    __tablename__ = "link_analytics"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    link_id = Column(Uuid, ForeignKey("assessment_links.id", ondelete="CASCADE"), nullable=False, index=True)

    event_type = Column(String(20), nullable=False)  # click / conversion
    visitor_id = Column(String(64), nullable=True)
    session_id = Column(String(100), nullable=True, index=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)
    referrer = Column(String(500), nullable=True)
    conversion_value = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True)

    link = relationship("AssessmentLink", back_populates="events")
