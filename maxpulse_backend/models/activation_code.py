"""
Activation code model.
One-time code a customer exchanges for app access.
"""

import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Numeric, Uuid
from sqlalchemy.sql import func

from .base import Base, BaseModel, utcnow

class ActivationCode(Base, BaseModel):
    __tablename__ = "activation_codes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(8), unique=True, nullable=False, index=True)
    distributor_id = Column(Uuid, ForeignKey("distributors.id", ondelete="SET NULL"), nullable=True, index=True)
    session_id = Column(String(100), nullable=True, index=True)

    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=False)
    assessment_type = Column(String(20), nullable=False, default="individual")  # individual / group
    plan_type = Column(String(20), nullable=False, default="annual")  # annual / monthly
    purchase_id = Column(Uuid, nullable=True)
    purchase_amount = Column(Numeric(10, 2), nullable=True)

    status = Column(String(20), nullable=False, default="pending")  # pending / activated / expired / revoked
    expires_at = Column(DateTime(timezone=True), nullable=False)
    activated_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
