"""
Structured logging for the sync layer.

Each record is a single JSON object (timestamp, level, event, component plus
any bound context and per-call fields) so sync activity can be grepped and
parsed by identity.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _ensure_handler(logger: logging.Logger) -> None:
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)


class StructuredLogger:
    """JSON logger carrying context that is repeated on every record."""

    def __init__(self, name: str, level: int = logging.INFO, context: Optional[Dict[str, Any]] = None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.context = dict(context or {})
        _ensure_handler(self.logger)

    def bind(self, **context) -> "StructuredLogger":
        """Return a logger that adds ``context`` to every record."""
        bound = StructuredLogger.__new__(StructuredLogger)
        bound.logger = self.logger
        bound.context = {**self.context, **context}
        return bound

    def render(self, level: int, event: str, fields: Dict[str, Any]) -> str:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": logging.getLevelName(level),
            "event": event,
            "component": self.logger.name,
        }
        record.update(self.context)
        record.update(fields)
        return json.dumps(record, default=str)

    def log(self, level: int, event: str, **fields) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, self.render(level, event, fields))

    def debug(self, event: str, **fields):
        self.log(logging.DEBUG, event, **fields)

    def info(self, event: str, **fields):
        self.log(logging.INFO, event, **fields)

    def warning(self, event: str, **fields):
        self.log(logging.WARNING, event, **fields)

    def error(self, event: str, **fields):
        self.log(logging.ERROR, event, **fields)


def get_logger(component: str) -> StructuredLogger:
    """Get a structured logger for a component of the sync layer."""
    return StructuredLogger(component)
