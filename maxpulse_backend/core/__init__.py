"""
Core module initialization.
Configuration, logging, security and shared dependencies for the MaxPulse backend.
"""

from .config import settings
from .logging import get_logger, setup_logging

# Initialize logging system on import
setup_logging()

logger = get_logger(__name__)
logger.info("Core module initialized")

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
]
