"""Structured logging helpers."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, MutableMapping

LOGGER_NAME = "tagbump"

_RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        extras = {key: value for key, value in record.__dict__.items() if key not in _RESERVED}
        payload.update(extras)
        return json.dumps(payload, ensure_ascii=False, default=str)


class CorrelationAdapter(logging.LoggerAdapter):
    """Attach the correlation id while keeping per-call extras."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def setup_logging(correlation_id: str, level: int = logging.INFO) -> CorrelationAdapter:
    """Configure the package logger for JSON output on stderr."""
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        for handler in logger.handlers:
            handler.setFormatter(JsonFormatter())
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handler.setStream(sys.stderr)
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return CorrelationAdapter(logger, {"correlation_id": correlation_id})


__all__ = ["CorrelationAdapter", "JsonFormatter", "LOGGER_NAME", "setup_logging"]
