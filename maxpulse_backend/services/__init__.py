"""
Service module for the MaxPulse backend.
Business logic between the API endpoints and the data models.
"""

from .commission_service import CommissionService
from .purchase_service import PurchaseService
from .auth_user_service import AuthUserService
from .activation_code_service import ActivationCodeService
from .dashboard_service import DashboardService
from .realtime_service import RealtimeService
from .email_service import EmailService
from .telegram_notification import TelegramNotificationService
from .link_tracking_service import LinkTrackingService

__all__ = [
    "CommissionService",
    "PurchaseService",
    "AuthUserService",
    "ActivationCodeService",
    "DashboardService",
    "RealtimeService",
    "EmailService",
    "TelegramNotificationService",
    "LinkTrackingService",
]
