"""Captured error event data models."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .frame import RawFrame


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CaptureOrigin(str, Enum):
    """Channel an exception was captured through."""

    GLOBAL = "global"
    FRAMEWORK = "framework"


class GlobalErrorPayload(BaseModel):
    """Payload posted by the browser's global error handler (window.onerror)."""

    message: str = ""
    filename: Optional[str] = None
    lineno: Optional[int] = None
    colno: Optional[int] = None
    stack: Optional[str] = None
    timestamp: Optional[datetime] = None


class FrameworkErrorPayload(BaseModel):
    """Payload posted by a framework error hook or error boundary."""

    model_config = ConfigDict(populate_by_name=True)

    framework: str  # 'react', 'vue', 'angular', ...
    message: str = ""
    stack: Optional[str] = None
    file_name: Optional[str] = Field(default=None, alias="fileName")
    line_number: Optional[int] = Field(default=None, alias="lineNumber")
    column_number: Optional[int] = Field(default=None, alias="columnNumber")
    component: Optional[str] = None
    lifecycle_phase: Optional[str] = None  # 'render', 'componentDidCatch', 'errorCaptured', ...
    component_stack: Optional[str] = None
    timestamp: Optional[datetime] = None


class FrameworkContext(BaseModel):
    """Auxiliary context supplied by a framework error hook."""

    model_config = ConfigDict(frozen=True)

    framework: str
    component: Optional[str] = None
    lifecycle_phase: Optional[str] = None
    component_stack: Optional[str] = None


class RawErrorEvent(BaseModel):
    """Normalized captured exception, before source map resolution."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: uuid4().hex)
    message: str
    frames: List[RawFrame] = []
    captured_at: datetime = Field(default_factory=_utcnow)
    origin: CaptureOrigin
    degraded: bool = False  # Cross-origin "Script error." with no detail
    malformed_frames: int = 0
    context: Optional[FrameworkContext] = None
