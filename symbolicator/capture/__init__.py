"""Error capture: stack frame extraction and per-origin capture adapters."""

from symbolicator.capture.adapters import (
    SCRIPT_ERROR_SENTINEL,
    AdapterRegistry,
    capture,
    capture_framework,
    capture_global,
    create_default_registry,
    is_cross_origin_script_error,
)
from symbolicator.capture.frames import (
    MalformedFrame,
    build_frame,
    extract_frames,
    parse_stack_line,
)

__all__ = [
    'SCRIPT_ERROR_SENTINEL',
    'AdapterRegistry',
    'capture',
    'capture_framework',
    'capture_global',
    'create_default_registry',
    'is_cross_origin_script_error',
    'MalformedFrame',
    'build_frame',
    'extract_frames',
    'parse_stack_line',
]
