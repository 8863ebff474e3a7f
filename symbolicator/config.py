"""
Application configuration management.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional

from symbolicator.models.cache import CachePolicy, CachePolicyKind


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Redis (unset means reports are written to the log instead)
    redis_url: Optional[str] = None
    report_queue_key: str = "error_reports:resolved"

    # Source map cache
    map_cache_policy: CachePolicyKind = CachePolicyKind.UNBOUNDED
    map_cache_max_entries: int = 500
    map_cache_ttl_seconds: float = 3600.0

    # Source map fetching
    map_fetch_timeout_seconds: Optional[float] = 10.0
    map_fetch_retries: int = 3
    map_root: Optional[str] = None  # Local directory mirroring served bundles
    map_allowed_hosts: List[str] = ["*"]  # e.g. ["cdn.example.com", "*.example.org"]

    # Application
    log_level: str = "INFO"
    allowed_origins: List[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = False

    def cache_policy(self) -> CachePolicy:
        """Build the map store eviction policy from the flat settings."""
        if self.map_cache_policy == CachePolicyKind.MAX_ENTRIES:
            return CachePolicy.bounded(self.map_cache_max_entries)
        if self.map_cache_policy == CachePolicyKind.TTL:
            return CachePolicy.ttl(self.map_cache_ttl_seconds)
        return CachePolicy.unbounded()


# Global settings instance
settings = Settings()
