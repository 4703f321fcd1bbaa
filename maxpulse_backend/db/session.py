# maxpulse_backend/db/session.py

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool, StaticPool

from maxpulse_backend.core.config import settings
from maxpulse_backend.core.logging import get_logger

logger = get_logger(__name__)

DATABASE_URL = settings.DATABASE_URL
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is not set")


def _engine_options(url: str) -> dict:
    """Engine keyword arguments for the configured backend"""
    if url.startswith("sqlite"):
        # One shared connection so in-memory databases survive across sessions
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_pre_ping": True,                              # Detect and refresh stale DB connections
        "poolclass": NullPool,                              # Each checkout is a fresh connection
        "connect_args": {"sslmode": settings.DB_SSLMODE},   # 'disable' in local dev
    }


try:
    engine = create_engine(
        DATABASE_URL,
        echo=settings.DEBUG,
        **_engine_options(DATABASE_URL)
    )

    # Mask sensitive parts for logging
    database_url_masked = DATABASE_URL.split("@")[-1] if "@" in DATABASE_URL else DATABASE_URL.split("://")[0]
    logger.info(f"Database engine created for {database_url_masked}")

except Exception as e:
    logger.error(f"Failed to create database engine: {e}")
    raise

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine
)

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session and ensures it's closed.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
