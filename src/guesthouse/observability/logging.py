"""Structured JSON logging with correlation ID support.

One JSON object per line on stdout. Call sites attach context through
``extra={"extra_fields": safe_log_context(...)}``; those keys are merged into
the top level of the line but never override the base fields.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .correlation import get_correlation_id

SERVICE_NAME = "guesthouse"

_BASE_FIELDS = frozenset({"timestamp", "level", "logger", "service", "message", "correlationId"})


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": SERVICE_NAME,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_obj["correlationId"] = correlation_id

        extra_fields = getattr(record, "extra_fields", None) or {}
        for key, value in extra_fields.items():
            if key not in _BASE_FIELDS:
                log_obj[key] = value

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


def _level_from_env() -> int:
    level = logging.getLevelName(os.environ.get("LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Get a logger writing JSON lines to stdout at LOG_LEVEL (default INFO)."""
    logger = logging.getLogger(name)

    # Configure once per logger name
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level_from_env())
        logger.propagate = False

    return logger
