"""
Database migration helpers.
Thin wrappers around Alembic commands used by the application entry points.
"""

import os
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.migration import MigrationContext
from alembic.script import ScriptDirectory

from maxpulse_backend.core.config import settings
from maxpulse_backend.core.logging import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent.absolute()
MIGRATIONS_DIR = os.path.join(PROJECT_ROOT, "alembic")
ALEMBIC_INI = os.path.join(PROJECT_ROOT, "alembic.ini")


def get_alembic_config() -> Config:
    """
    Build the Alembic configuration bound to the configured DATABASE_URL.
    """
    config = Config(ALEMBIC_INI)
    config.set_main_option("script_location", MIGRATIONS_DIR)
    config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    return config


def upgrade_database(revision: str = "head") -> None:
    """
    Upgrade the database to the given revision.
    """
    try:
        command.upgrade(get_alembic_config(), revision)
        logger.info(f"✅ Database upgraded to revision '{revision}'")
    except Exception as e:
        logger.error(f"❌ Error upgrading database: {str(e)}")
        raise


def check_migrations(engine) -> bool:
    """
    Check whether the database is behind the latest migration.

    Returns:
        bool: True if migrations are pending
    """
    try:
        with engine.connect() as conn:
            current_revision = MigrationContext.configure(conn).get_current_revision()

        head_revision = ScriptDirectory.from_config(get_alembic_config()).get_current_head()
        return current_revision != head_revision
    except Exception as e:
        logger.error(f"❌ Error checking migrations: {str(e)}")
        return True
