"""JSON log lines for Cloud Logging.

Each record is one JSON object on stdout. ``severity`` is the field Cloud
Logging reads for the level; ``extra={"extra_fields": {...}}`` merges
structured context (already passed through safe_log_context) into the line.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .correlation import get_correlation_id

SERVICE_NAME = "ebar-payments"
_DEFAULT_LEVEL = "INFO"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "severity": record.levelname,
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cid = get_correlation_id()
        if cid:
            entry["correlationId"] = cid

        if record.exc_info:
            entry["errorType"] = record.exc_info[0].__name__ if record.exc_info[0] else None
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(getattr(record, "extra_fields", None) or {})
        return json.dumps(entry, default=str)


def _level_from_env() -> str:
    level = os.environ.get("LOG_LEVEL", _DEFAULT_LEVEL).upper()
    return level if level in logging.getLevelNamesMapping() else _DEFAULT_LEVEL


def get_logger(name: str) -> logging.Logger:
    """Logger writing JSON lines to stdout at LOG_LEVEL (default INFO).

    Handlers are attached once per logger name.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(_level_from_env())
    logger.propagate = False
    return logger
