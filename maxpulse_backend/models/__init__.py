"""
Database models module for the MaxPulse backend.
Every model is imported here so Base.metadata sees all tables.
"""

from .base import Base, BaseModel, create_tables
from .distributor import Distributor, Product
from .commission import Purchase, Commission, LedgerTransaction, Withdrawal
from .activation_code import ActivationCode
from .auth_user import AuthUser
from .system import SystemLog, RealtimeEvent
from .link import AssessmentLink, LinkAnalytics

__all__ = [
    "Base",
    "BaseModel",
    "create_tables",
    "Distributor",
    "Product",
    "Purchase",
    "Commission",
    "LedgerTransaction",
    "Withdrawal",
    "ActivationCode",
    "AuthUser",
    "SystemLog",
    "RealtimeEvent",
    "AssessmentLink",
    "LinkAnalytics",
]
