# maxpulse_backend/models/base.py

"""
Base module for SQLAlchemy models:
- declarative base class `Base`
- `BaseModel` mixin with to_dict()
- create_tables() used on startup when migrations are not run
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import inspect
from sqlalchemy.orm import declarative_base

from maxpulse_backend.core.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BaseModel:
    """
    Mixin for SQLAlchemy models, adds a JSON-friendly to_dict().
    """
    def to_dict(self):
        result = {}
        for col in self.__table__.columns:
            value = getattr(self, col.name)
            if isinstance(value, Decimal):
                value = float(value)
            elif isinstance(value, uuid.UUID):
                value = str(value)
            elif isinstance(value, datetime):
                value = ensure_aware(value).isoformat()
            result[col.name] = value
        return result


def create_tables(engine):
    """
    Create all model tables that do not exist yet.
    """
    try:
        Base.metadata.create_all(engine)
        existing_tables = inspect(engine).get_table_names()
        logger.info(f"✅ Database tables ready: {existing_tables}")
    except Exception as e:
        logger.error(f"❌ Error during database initialization: {str(e)}")
        raise
