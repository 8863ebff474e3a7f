"""Source map cache policy models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class CachePolicyKind(str, Enum):
    """Eviction strategy for the map store."""

    UNBOUNDED = "unbounded"
    MAX_ENTRIES = "max-entries"
    TTL = "ttl"


class CachePolicy(BaseModel):
    """Eviction policy applied by the map store."""

    kind: CachePolicyKind = CachePolicyKind.UNBOUNDED
    max_entries: Optional[int] = Field(default=None, ge=1)
    ttl_seconds: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def check_limits(self) -> "CachePolicy":
        if self.kind == CachePolicyKind.MAX_ENTRIES and self.max_entries is None:
            raise ValueError("max-entries policy requires max_entries")
        if self.kind == CachePolicyKind.TTL and self.ttl_seconds is None:
            raise ValueError("ttl policy requires ttl_seconds")
        return self

    @classmethod
    def unbounded(cls) -> "CachePolicy":
        return cls()

    @classmethod
    def bounded(cls, max_entries: int) -> "CachePolicy":
        return cls(kind=CachePolicyKind.MAX_ENTRIES, max_entries=max_entries)

    @classmethod
    def ttl(cls, seconds: float) -> "CachePolicy":
        return cls(kind=CachePolicyKind.TTL, ttl_seconds=seconds)
