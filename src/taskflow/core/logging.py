"""Logging setup: JSON or text lines tagged with the request and user ids."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any

from .config import Settings
from .context import get_request_id, get_user_id

CONTEXT_FIELDS = ("request_id", "user_id")
TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s user=%(user_id)s] %(name)s: %(message)s"

# Attributes every LogRecord has; anything else on a record came from ``extra``.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", *CONTEXT_FIELDS}


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record, with ``extra`` fields merged in."""

    def __init__(self, *, defaults: dict[str, Any] | None = None) -> None:
        super().__init__()
        self._defaults = dict(defaults or {})

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            **self._defaults,
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            payload[field] = getattr(record, field, "-")
        for key, value in vars(record).items():
            if key not in _STANDARD_ATTRS:
                payload.setdefault(key, value)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class LogContextFilter(logging.Filter):
    """Copy the current request id and signed-in user id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.request_id = get_request_id()
        # Records emitted inside a handler already know their user.
        if getattr(record, "user_id", None) is None:
            record.user_id = get_user_id()
        return True


def _handler(formatter: str, level: int) -> dict[str, Any]:
    return {
        "class": "logging.StreamHandler",
        "stream": "ext://sys.stdout",
        "formatter": formatter,
        "level": level,
        "filters": ["log_context"],
    }


def configure_logging(settings: Settings) -> None:
    """Install the handler for ``settings.log_format`` on the root and server loggers."""

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.captureWarnings(True)

    quiet = {"handlers": ["default"], "level": logging.WARNING, "propagate": False}
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonLogFormatter,
                    "defaults": {"service": settings.project_name, "environment": settings.environment},
                },
                "text": {"format": TEXT_FORMAT},
            },
            "filters": {"log_context": {"()": LogContextFilter}},
            "handlers": {"default": _handler(settings.log_format, level)},
            "loggers": {
                "": {"handlers": ["default"], "level": level},
                "uvicorn": {"handlers": ["default"], "level": level, "propagate": False},
                # ``taskflow.access`` already logs each request with its user.
                "uvicorn.access": quiet,
                "httpx": quiet,
                "httpcore": quiet,
            },
        }
    )


__all__ = ["JsonLogFormatter", "LogContextFilter", "configure_logging"]
