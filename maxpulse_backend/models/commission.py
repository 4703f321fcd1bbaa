"""
Purchase, commission, ledger and withdrawal models.
"""

import uuid
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, JSON, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base, BaseModel, utcnow

class Purchase(Base, BaseModel):
    """
    Completed checkout. Immutable once written.
    """
    __tablename__ = "purchases"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    distributor_id = Column(Uuid, ForeignKey("distributors.id", ondelete="CASCADE"), nullable=False, index=True)

    product_id = Column(String(50), nullable=False)
    product_name = Column(String(200), nullable=False)
    product_type = Column(String(20), nullable=False, default="product")
    price = Column(Numeric(10, 2), nullable=False)
    commission_rate = Column(Numeric(5, 2), nullable=False)

    client_name = Column(String(200), nullable=False)
    client_email = Column(String(255), nullable=True)
    session_id = Column(String(100), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="completed")

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())


class Commission(Base, BaseModel):
    """
    Commission owed to a distributor for a sale.
    pending -> approved, never deleted.
    """
    __tablename__ = "commissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    distributor_id = Column(Uuid, ForeignKey("distributors.id", ondelete="CASCADE"), nullable=False, index=True)

    product_id = Column(String(50), nullable=True)
    product_name = Column(String(200), nullable=False)
    product_type = Column(String(20), nullable=False, default="product")
    client_name = Column(String(200), nullable=False)
    client_email = Column(String(255), nullable=True)

    sale_amount = Column(Numeric(10, 2), nullable=False)
    commission_rate = Column(Numeric(5, 2), nullable=False)
    commission_amount = Column(Numeric(10, 2), nullable=False)

    status = Column(String(20), nullable=False, default="pending", index=True)
    session_id = Column(String(100), nullable=True, index=True)

    approved_by = Column(String(100), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)

    distributor = relationship("Distributor", backref="commissions")


class LedgerTransaction(Base, BaseModel):
    """
    Signed ledger line: commission_earned (+) or withdrawal_request (-)
    """
    __tablename__ = "transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    distributor_id = Column(Uuid, ForeignKey("distributors.id", ondelete="CASCADE"), nullable=False, index=True)

    transaction_type = Column(String(30), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    reference_id = Column(Uuid, nullable=True, index=True)  # commission or withdrawal id
    description = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)


class Withdrawal(Base, BaseModel):
    """
    Payout request against the available balance
    """
    __tablename__ = "withdrawals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    distributor_id = Column(Uuid, ForeignKey("distributors.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    withdrawal_method = Column(String(50), nullable=False)
    payment_details = Column(JSON, nullable=True)
    # pending / processing / completed / rejected / cancelled
    status = Column(String(20), nullable=False, default="pending")

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
