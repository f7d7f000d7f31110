"""Structured JSON logging for the service."""

from __future__ import annotations

import json
import logging

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - formatting
        base = {"level": record.levelname, "msg": record.getMessage()}
        base.update({k: v for k, v in record.__dict__.items() if k not in _RESERVED})
        return json.dumps(base, default=str)


logger = logging.getLogger("wallapop_agent")


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach the JSON handler once and set the level."""
    if not any(isinstance(h.formatter, _JsonFormatter) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(_JsonFormatter())
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
