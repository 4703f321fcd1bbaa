"""
App account created when a customer redeems an activation code.
"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, JSON, Uuid
from sqlalchemy.sql import func

from .base import Base, BaseModel, utcnow

class AuthUser(Base, BaseModel):
    __tablename__ = "auth_users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    password_hash = Column(String(255), nullable=False)
    user_metadata = Column(JSON, nullable=True)
    email_confirmed = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    def to_dict(self):
        data = super().to_dict()
        data.pop("password_hash", None)
        return data
