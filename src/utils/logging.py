"""Structured JSON logging configuration."""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Dict, Any

# Extra-field names whose values must never reach the logs
SENSITIVE_KEYS = frozenset({
    'password', 'password_hash', 'token', 'idToken', 'id_token', 'authorization', 'private_key',
})
REDACTED = '[REDACTED]'


# LogRecord attributes that are not caller-supplied extras
_RECORD_ATTRS = frozenset(vars(logging.LogRecord('', 0, '', 0, '', None, None))) | {'message', 'asctime'}


def _redact(key: str, value: Any) -> Any:
    return REDACTED if key in SENSITIVE_KEYS else value


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields passed through ``extra=``, with sensitive values masked."""
    return {
        key: _redact(key, value)
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not callable(value)
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, then extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace('+00:00', 'Z'),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(record_extras(record))
        return json.dumps(entry, default=str)


def setup_structured_logging():
    """Configure structured JSON logging for the application.

    This configures all loggers including uvicorn access logs.
    Level comes from LOG_LEVEL (default INFO).
    """
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    uvicorn_access = logging.getLogger("uvicorn.access")
    uvicorn_access.handlers = [handler]
    uvicorn_access.setLevel(logging.WARNING)
