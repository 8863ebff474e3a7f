"""Data models for the JS error symbolicator."""

from .api_response import EvictionResult, ReportAccepted, ResolveRequest
from .cache import CachePolicy, CachePolicyKind
from .error_event import (
    CaptureOrigin,
    FrameworkContext,
    FrameworkErrorPayload,
    GlobalErrorPayload,
    RawErrorEvent,
)
from .frame import RawFrame, ResolvedFrame
from .report import ResolvedErrorReport

__all__ = [
    # Frame models
    "RawFrame",
    "ResolvedFrame",
    # Capture models
    "CaptureOrigin",
    "GlobalErrorPayload",
    "FrameworkErrorPayload",
    "FrameworkContext",
    "RawErrorEvent",
    # Report models
    "ResolvedErrorReport",
    # Cache models
    "CachePolicy",
    "CachePolicyKind",
    # API models
    "ReportAccepted",
    "ResolveRequest",
    "EvictionResult",
]
