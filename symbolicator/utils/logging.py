"""
JSON log records with per-event context.

Every record is one JSON object. The fields that identify what a record is
about (``event_id``, ``script_url``, ``map_url``, ``origin``) sit at the top
level so log queries can filter on them; any other ``extra`` values are
grouped under ``context``.
"""

import logging
import json
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, MutableMapping, TextIO
from logging import LogRecord


PROMOTED_FIELDS = ("event_id", "script_url", "map_url", "origin")

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "redis", "uvicorn.access")

# Attributes every LogRecord carries; anything else came from ``extra``
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """Renders a LogRecord as a single-line JSON object."""

    def __init__(self, promoted_fields: Iterable[str] = PROMOTED_FIELDS):
        super().__init__()
        self._promoted = tuple(promoted_fields)

    def format(self, record: LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {}
        for key, value in record.__dict__.items():
            if key in self._promoted:
                payload[key] = value
            elif key not in _RECORD_ATTRIBUTES:
                context[key] = value
        if context:
            payload["context"] = context

        if record.exc_info:
            payload["error"] = self._error_block(record.exc_info)

        payload["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }
        return json.dumps(payload, default=str)

    @staticmethod
    def _error_block(exc_info) -> Dict[str, Optional[str]]:
        exc_type, exc_value, _ = exc_info
        return {
            "type": exc_type.__name__ if exc_type else None,
            "message": str(exc_value) if exc_value else None,
            "stack_trace": "".join(traceback.format_exception(*exc_info)),
        }


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter whose bound fields are merged into every record's ``extra``.

    Fields passed at the call site win over bound ones.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def with_context(self, **context: Any) -> "ContextLoggerAdapter":
        """Derive an adapter with extra bound fields, e.g. ``with_context(event_id=...)``."""
        return ContextLoggerAdapter(self.logger, {**self.extra, **context})


def setup_logging(log_level: str = "INFO", stream: TextIO = sys.stdout) -> None:
    """
    Route all logging through one JSON handler on the root logger.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Where records are written
    """
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    handler.setLevel(log_level)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, **context: Any) -> ContextLoggerAdapter:
    """
    Module logger with optional bound context.

    Example:
        logger = get_logger(__name__, origin="global")
        logger.info("Frames extracted")  # record carries origin
    """
    return ContextLoggerAdapter(logging.getLogger(name), context)


def log_capture(
    logger: logging.LoggerAdapter,
    event_id: str,
    origin: str,
    frame_count: int,
    malformed_frames: int = 0,
    degraded: bool = False,
) -> None:
    """
    Record that an error event was captured.

    Args:
        logger: Logger to use
        event_id: Captured event ID
        origin: Capture origin ('global' or 'framework')
        frame_count: Number of valid frames extracted
        malformed_frames: Number of frames dropped as malformed
        degraded: Whether the capture was an opaque cross-origin error
    """
    extra = {
        "event_id": event_id,
        "origin": origin,
        "frame_count": frame_count,
        "malformed_frames": malformed_frames,
        "degraded": degraded,
    }
    if degraded:
        logger.info("Degraded cross-origin error captured", extra=extra)
    else:
        logger.info(f"Error captured: {frame_count} frames", extra=extra)


def log_map_fetch(
    logger: logging.LoggerAdapter,
    script_url: str,
    map_url: Optional[str] = None,
    duration_ms: Optional[float] = None,
    error: Optional[str] = None,
) -> None:
    """Record the outcome of reading a source map; failures log at WARNING."""
    extra: Dict[str, Any] = {"script_url": script_url}
    if map_url is not None:
        extra["map_url"] = map_url
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    if error:
        extra["error"] = error
        logger.warning(f"Source map unavailable for {script_url}", extra=extra)
    else:
        logger.info(f"Source map loaded for {script_url}", extra=extra)


def log_error_with_context(
    logger: logging.LoggerAdapter,
    message: str,
    error: Exception,
    **context: Any,
) -> None:
    """Log ``error`` at ERROR with its traceback and ``error_type`` in context."""
    context.setdefault("error_type", type(error).__name__)
    logger.error(message, extra=context, exc_info=error)
