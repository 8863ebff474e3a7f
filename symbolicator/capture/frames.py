"""
Frame Extractor: builds validated RawFrames from structured fields or stack text.

Supported stack text layouts, one frame per line:
- V8 (Chrome, Edge, Node):   ``at fn (url:line:col)`` / ``at url:line:col``
- SpiderMonkey / JSC:        ``fn@url:line:col`` / ``@url:line:col``

Browsers report columns 1-based everywhere (stack text, ``ErrorEvent.colno``,
``Error.columnNumber``); RawFrame columns are 0-based, as source maps are.
"""

import re
from typing import List, Optional, Tuple, Union

from pydantic import ValidationError

from symbolicator.models.frame import RawFrame


V8_FRAME_RE = re.compile(r"^\s*at\s+(?:(?P<function>.+?)\s+\((?P<location>.+)\)|(?P<bare>\S.*?))\s*$")
GECKO_FRAME_RE = re.compile(r"^\s*(?P<function>[^@]*)@(?P<location>\S+:\d+(?::\d+)?)\s*$")
LOCATION_RE = re.compile(r"^(?P<url>.+?):(?P<line>\d+)(?::(?P<column>\d+))?$")

ANONYMOUS_FUNCTION_NAMES = {"", "<anonymous>", "anonymous"}

# Column numbering used by browser-reported positions
BROWSER_COLUMN_BASE = 1


class MalformedFrame(ValueError):
    """Raised when a stack frame lacks a valid script URL, line or column."""
    pass


def _normalize_function_name(name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    name = name.strip()
    if name.startswith("async "):
        name = name[len("async "):].strip()
    return None if name in ANONYMOUS_FUNCTION_NAMES else name


def _as_int(value: Union[int, str, None], field: str) -> int:
    if value is None or isinstance(value, bool):
        raise MalformedFrame(f"Frame is missing a numeric {field}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise MalformedFrame(f"Frame {field} {value!r} is not numeric") from None


def build_frame(
    script_url: Optional[str],
    line: Union[int, str, None],
    column: Union[int, str, None],
    function_name: Optional[str] = None,
    column_base: int = 0,
) -> RawFrame:
    """
    Build a validated RawFrame.

    Args:
        script_url: URL of the generated script
        line: 1-based line number
        column: Column number, counted from ``column_base``
        function_name: Function name as reported in the stack, if any
        column_base: Numbering of ``column``; pass ``BROWSER_COLUMN_BASE``
            for positions reported by a browser

    Returns:
        RawFrame with a 0-based column

    Raises:
        MalformedFrame: If the URL is empty, line or column is missing or
            non-numeric, line < 1 or column < ``column_base``
    """
    if not script_url:
        raise MalformedFrame("Frame is missing a script URL")

    line_number = _as_int(line, "line")
    column_number = _as_int(column, "column") - column_base

    try:
        return RawFrame(
            script_url=script_url,
            line=line_number,
            column=column_number,
            function_name=_normalize_function_name(function_name),
        )
    except ValidationError as e:
        raise MalformedFrame(
            f"Invalid frame position {script_url}:{line}:{column}"
        ) from e


def _parse_location(location: str, function_name: Optional[str]) -> RawFrame:
    match = LOCATION_RE.match(location.strip())
    if not match:
        raise MalformedFrame(f"Frame location {location!r} has no line and column")
    return build_frame(
        match.group("url"),
        match.group("line"),
        match.group("column"),
        function_name,
        column_base=BROWSER_COLUMN_BASE,
    )


def parse_stack_line(text: str) -> Optional[RawFrame]:
    """
    Parse a single line of stack text.

    Returns:
        RawFrame, or None when the line is not a stack frame at all
        (the leading ``TypeError: ...`` line, blank lines)

    Raises:
        MalformedFrame: If the line is a frame whose location is unusable
    """
    match = V8_FRAME_RE.match(text)
    if match:
        if match.group("location") is not None:
            return _parse_location(match.group("location"), match.group("function"))
        return _parse_location(match.group("bare"), None)

    match = GECKO_FRAME_RE.match(text)
    if match:
        return _parse_location(match.group("location"), match.group("function"))

    return None


def extract_frames(stack: Optional[str]) -> Tuple[List[RawFrame], int]:
    """
    Extract frames from free-text stack trace.

    Malformed frame lines are dropped and counted; they never abort the
    extraction of the remaining lines.

    Returns:
        Tuple of (frames in stack order, number of malformed frames dropped)
    """
    frames: List[RawFrame] = []
    malformed = 0

    for text in (stack or "").splitlines():
        try:
            frame = parse_stack_line(text)
        except MalformedFrame:
            malformed += 1
            continue
        if frame is not None:
            frames.append(frame)

    return frames, malformed
