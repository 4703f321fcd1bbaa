"""
Database package: engine, session factory and migration helpers.
"""

from maxpulse_backend.db.session import get_db, SessionLocal, engine
from maxpulse_backend.models.base import Base

__all__ = ["get_db", "SessionLocal", "engine", "Base"]
