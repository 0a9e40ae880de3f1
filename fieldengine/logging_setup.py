"""Central logging configuration for the field engine service.

Installs one stdout handler on the root logger. Every record carries the
id of the HTTP request it was emitted under (``-`` outside a request), so
field saves, validations and propagation tasks started by a request can be
correlated in the output.
"""
from __future__ import annotations

import logging
import os
from contextvars import ContextVar
from logging.config import dictConfig
from typing import Any, Dict, Optional

# Set by RequestIdMiddleware; asyncio tasks inherit it when they are created
REQUEST_ID: ContextVar[str] = ContextVar("fieldengine_request_id", default="-")

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:[%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = REQUEST_ID.get()
        return True


def build_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Return the dictConfig mapping for ``level``.

    Restart and event chatter of the engine is logged at DEBUG and only shows
    up when the service itself runs at DEBUG.
    """
    level = level.upper()
    engine_level = "DEBUG" if level == "DEBUG" else "INFO"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_id": {"()": RequestIdFilter}},
        "formatters": {"default": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "filters": ["request_id"],
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "fieldengine.logic.tasks": {"level": engine_level},
            "fieldengine.logic.events": {"level": engine_level},
            "uvicorn": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": level, "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Configure logging once per process.

    Does nothing when the root logger already has handlers (reloaders, test
    runners). The level defaults to ``FIELDENGINE_LOG_LEVEL`` or INFO.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    dictConfig(build_logging_config(level or os.environ.get("FIELDENGINE_LOG_LEVEL", "INFO")))


__all__ = ["REQUEST_ID", "RequestIdFilter", "build_logging_config", "configure_logging"]
