"""API request and response data models."""

from typing import Optional

from pydantic import BaseModel, Field


class ReportAccepted(BaseModel):
    """Response from the report intake endpoints."""

    status: str  # 'accepted' or 'degraded'
    event_id: str
    frame_count: int
    malformed_frames: int = 0


class ResolveRequest(BaseModel):
    """Single minified position to resolve."""

    script_url: str = Field(min_length=1)
    line: int = Field(ge=1)
    column: int = Field(ge=0)


class EvictionResult(BaseModel):
    """Result of a cache eviction request."""

    evicted: int
    script_url: Optional[str] = None
