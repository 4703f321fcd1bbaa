"""
Distributor and product catalog models.
"""

import uuid
from sqlalchemy import Column, String, Boolean, Numeric, DateTime, Integer, Uuid
from sqlalchemy.sql import func

from .base import Base, BaseModel, utcnow

class Distributor(Base, BaseModel):
    """
    Sales affiliate who refers customers and earns commission
    """
    __tablename__ = "distributors"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    distributor_code = Column(String(20), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    commission_rate = Column(Numeric(5, 2), nullable=False, default=15.00)
    tier_level = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default="active")  # active / inactive / suspended

    # Running total of approved commissions
    total_commissions = Column(Numeric(10, 2), nullable=False, default=0.00)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class Product(Base, BaseModel):
    """
    Sellable product; product_type drives the commission bonus
    """
    __tablename__ = "products"

    id = Column(String(50), primary_key=True)
    name = Column(String(200), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    commission_rate = Column(Numeric(5, 2), nullable=False)
    product_type = Column(String(20), nullable=False, default="product")  # product / app / package / service
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
