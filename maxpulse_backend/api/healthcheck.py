"""
Health check and status endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from maxpulse_backend.core.config import settings
from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.db.migrations_manager import check_migrations
from maxpulse_backend.db.session import get_db

logger = get_logger(__name__)

router = APIRouter()

@router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "maxpulse-backend"}

@router.get("/status")
async def service_status(db: Session = Depends(get_db)):
    """
    Database connectivity and migration state, for deploy checks.
    """
    database = "ok"
    try:
        db.execute(text("SELECT 1")).fetchone()
    except Exception as e:
        logger.error(f"❌ Database check failed: {str(e)}")
        database = "error"

    migrations = "unknown"
    if database == "ok":
        migrations = "pending" if check_migrations(db.get_bind()) else "current"

    return {
        "status": "ok" if database == "ok" else "degraded",
        "version": settings.VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": database,
        "migrations": migrations,
        "environment": "production" if settings.PRODUCTION else "development"
    }
