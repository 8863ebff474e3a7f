"""Resolved error report data models."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .error_event import CaptureOrigin, FrameworkContext
from .frame import ResolvedFrame


class ResolvedErrorReport(BaseModel):
    """Error report with frames mapped back to original sources."""

    model_config = ConfigDict(frozen=True)

    event_id: str
    message: str
    frames: List[ResolvedFrame] = []
    captured_at: datetime
    origin: CaptureOrigin
    degraded: bool = False
    context: Optional[FrameworkContext] = None

    @property
    def resolved_count(self) -> int:
        return sum(1 for frame in self.frames if frame.resolved)
