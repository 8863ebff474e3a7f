"""
Capture Adapters: convert native error payloads into RawErrorEvents.

Each capture origin is handled by a plain converter function registered in
an AdapterRegistry. Adapters run on the intake path, so they never perform
I/O; they only build the event.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from symbolicator.capture.frames import BROWSER_COLUMN_BASE, MalformedFrame, build_frame, extract_frames
from symbolicator.models.error_event import (
    CaptureOrigin,
    FrameworkContext,
    FrameworkErrorPayload,
    GlobalErrorPayload,
    RawErrorEvent,
)
from symbolicator.models.frame import RawFrame

logger = logging.getLogger(__name__)

# Message browsers substitute for errors thrown by cross-origin scripts
SCRIPT_ERROR_SENTINEL = "Script error."

CaptureConverter = Callable[[Any], RawErrorEvent]


def is_cross_origin_script_error(payload: GlobalErrorPayload) -> bool:
    """
    Detect the browser's opaque cross-origin error.

    Scripts loaded from another origin without CORS opt-in surface only the
    sentinel message with no URL, position or stack.
    """
    message = payload.message.strip()
    return (
        message in (SCRIPT_ERROR_SENTINEL, SCRIPT_ERROR_SENTINEL.rstrip("."))
        and not payload.filename
        and not (payload.stack and payload.stack.strip())
    )


def _structured_frame(
    script_url: Optional[str],
    line: Optional[int],
    column: Optional[int],
) -> Tuple[List[RawFrame], int]:
    if not script_url and line is None and column is None:
        return [], 0
    try:
        return [build_frame(script_url, line, column, column_base=BROWSER_COLUMN_BASE)], 0
    except MalformedFrame as e:
        logger.debug(f"Dropping malformed structured frame: {e}")
        return [], 1


def capture_global(payload: GlobalErrorPayload) -> RawErrorEvent:
    """
    Convert a global error handler payload into a RawErrorEvent.

    Frames come from the stack text when it yields any; otherwise from the
    (filename, lineno, colno) triple the browser supplies directly.
    """
    captured_at = payload.timestamp or datetime.now(timezone.utc)

    if is_cross_origin_script_error(payload):
        return RawErrorEvent(
            message=SCRIPT_ERROR_SENTINEL,
            frames=[],
            captured_at=captured_at,
            origin=CaptureOrigin.GLOBAL,
            degraded=True,
        )

    frames, malformed = extract_frames(payload.stack)
    if not frames:
        frames, structured_malformed = _structured_frame(payload.filename, payload.lineno, payload.colno)
        malformed += structured_malformed

    return RawErrorEvent(
        message=payload.message,
        frames=frames,
        captured_at=captured_at,
        origin=CaptureOrigin.GLOBAL,
        malformed_frames=malformed,
    )


def capture_framework(payload: FrameworkErrorPayload) -> RawErrorEvent:
    """
    Convert a framework error hook payload into a RawErrorEvent.

    Framework-wrapped errors often lack direct position fields. The direct
    fields are used only when they give a complete position; otherwise the
    frames are parsed out of the stack text.
    """
    frames, malformed = _structured_frame(
        payload.file_name, payload.line_number, payload.column_number
    )
    if not frames:
        frames, stack_malformed = extract_frames(payload.stack)
        malformed += stack_malformed

    return RawErrorEvent(
        message=payload.message,
        frames=frames,
        captured_at=payload.timestamp or datetime.now(timezone.utc),
        origin=CaptureOrigin.FRAMEWORK,
        malformed_frames=malformed,
        context=FrameworkContext(
            framework=payload.framework,
            component=payload.component,
            lifecycle_phase=payload.lifecycle_phase,
            component_stack=payload.component_stack,
        ),
    )


class AdapterRegistry:
    """Maps capture origins to their converter functions."""

    def __init__(self):
        """Initialize an empty registry."""
        self._converters: Dict[CaptureOrigin, CaptureConverter] = {}

    def register(self, origin: CaptureOrigin, converter: CaptureConverter) -> None:
        """
        Register the converter for a capture origin.

        Args:
            origin: Capture origin handled by the converter
            converter: Function turning a native payload into a RawErrorEvent
        """
        if origin in self._converters:
            logger.warning(f"Converter for origin '{origin.value}' already registered, overwriting")
        self._converters[origin] = converter

    def get(self, origin: CaptureOrigin) -> Optional[CaptureConverter]:
        return self._converters.get(origin)

    def list_origins(self) -> List[CaptureOrigin]:
        return list(self._converters.keys())

    def capture(self, origin: CaptureOrigin, payload: Any) -> RawErrorEvent:
        """
        Convert a payload with the converter registered for ``origin``.

        Raises:
            KeyError: If no converter is registered for the origin
        """
        converter = self._converters.get(origin)
        if converter is None:
            raise KeyError(f"No capture adapter registered for origin '{origin.value}'")
        return converter(payload)


def create_default_registry() -> AdapterRegistry:
    """Registry with the built-in global and framework adapters."""
    registry = AdapterRegistry()
    registry.register(CaptureOrigin.GLOBAL, capture_global)
    registry.register(CaptureOrigin.FRAMEWORK, capture_framework)
    return registry


default_registry = create_default_registry()


def capture(origin: CaptureOrigin, payload: Any) -> RawErrorEvent:
    """Convert a native payload using the default adapter registry."""
    return default_registry.capture(origin, payload)
