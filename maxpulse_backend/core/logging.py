"""
Logging configuration for the MaxPulse backend.

Console lines for humans, one JSON object per line on disk.
Context passed through get_context_logger() (distributor_id, commission_id)
becomes top-level keys in the JSON output.
"""

import json
import logging
import os
import sys
import time
from typing import Any, Dict

from maxpulse_backend.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

FORCE_DEBUG = os.getenv("FORCE_DEBUG", "False").lower() == "true"
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "True").lower() == "true"
LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.getcwd(), "logs"))

# Libraries that are chatty at INFO
QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "aiohttp.access": logging.WARNING,
    "alembic.runtime.migration": logging.INFO,
}

# Loggers that install their own handlers and would print twice
UVICORN_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


class JsonFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record):
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            entry.update(context)

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


def _resolve_level(force_debug: bool) -> int:
    if force_debug or FORCE_DEBUG or settings.DEBUG:
        return logging.DEBUG
    return getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)


def setup_logging(force_debug: bool = False):
    """
    Configure the root logger. Safe to call more than once.
    """
    level = _resolve_level(force_debug)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    if LOG_TO_FILE:
        os.makedirs(LOG_DIR, exist_ok=True)
        file_handler = logging.FileHandler(
            os.path.join(LOG_DIR, f"maxpulse_{time.strftime('%Y%m%d')}.log"),
            encoding="utf-8"
        )
        file_handler.setFormatter(JsonFormatter())
        root_logger.addHandler(file_handler)

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(logging.DEBUG if level == logging.DEBUG else quiet_level)

    root_logger.info(
        f"📝 Logging ready for {settings.APP_NAME} {settings.VERSION} "
        f"({'production' if settings.PRODUCTION else 'development'}, "
        f"level {logging.getLevelName(level)}, file output {'on' if LOG_TO_FILE else 'off'})"
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Attaches a fixed context dict to every record as record.context"""

    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        return msg, kwargs


def get_context_logger(name: str, context: Dict[str, Any]) -> ContextLoggerAdapter:
    """
    Logger that tags every line with context, e.g. {"distributor_id": ...}
    """
    return ContextLoggerAdapter(get_logger(name), context)
