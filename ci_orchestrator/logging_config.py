"""
File: logging_config.py
Purpose: One-call logging setup shared by the CLI and the FastAPI app -- plain text for
    interactive use, JSON lines for CI log collectors, with the current service/stage attached
    to records when callers pass them via `extra=`.
When Used: Called once at process start (cli.main, the FastAPI lifespan handler).
Why Created: Jenkins console output is the primary place these logs are read, so every module
    logs through `logging.getLogger(__name__)` and this module decides the format.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s [service=%(service)s stage=%(stage)s] %(message)s"


class JsonLogFormatter(logging.Formatter):
    """Formats records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": getattr(record, "service", None),
            "stage": getattr(record, "stage", None),
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


class PlainTextFormatter(logging.Formatter):
    """Human-friendly formatter; fills in '-' for missing context fields."""

    def format(self, record: logging.LogRecord) -> str:
        record.service = getattr(record, "service", None) or "-"
        record.stage = getattr(record, "stage", None) or "-"
        return super().format(record)


def configure_logging(level: str = "INFO", json_enabled: bool = False, stream: Optional[Any] = None) -> None:
    """Install a single stream handler on the root logger."""
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    if json_enabled:
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(PlainTextFormatter(PLAIN_FORMAT))

    logging.basicConfig(level=resolved, handlers=[handler], force=True)
