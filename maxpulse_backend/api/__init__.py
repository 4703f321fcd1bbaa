# maxpulse_backend/api/__init__.py
"""
API module for the MaxPulse backend.
Contains FastAPI route definitions for all endpoints.
"""

from .functions import router as functions_router
from .activation import router as activation_router
from .dashboard import router as dashboard_router
from .realtime import router as realtime_router
from .healthcheck import router as healthcheck_router
from .links import router as links_router

__all__ = [
    "functions_router",
    "activation_router",
    "dashboard_router",
    "realtime_router",
    "healthcheck_router",
    "links_router",
]
