"""
Map Store: per-URL cache of decoded source maps.

Concurrent requests for the same script URL share a single in-flight
fetch+decode task, and a map is only published to the cache once it is
fully decoded. Failures are reported to every waiter and are not cached.
"""

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from pydantic import ValidationError

from symbolicator.models.cache import CachePolicy, CachePolicyKind
from symbolicator.sourcemap.document import SourceMap
from symbolicator.sourcemap.mappings import MalformedMappings
from symbolicator.utils.logging import get_logger


logger = get_logger(__name__)


class MapUnavailable(Exception):
    """Raised when a source map cannot be located, read or validated."""

    def __init__(self, location: str, reason: str):
        super().__init__(f"Source map unavailable for {location}: {reason}")
        self.location = location
        self.reason = reason


class MapDocumentFetcher(Protocol):
    """Anything able to return the raw map document for a script URL."""

    async def fetch(self, script_url: str) -> str:
        ...


@dataclass
class _CacheEntry:
    source_map: SourceMap
    loaded_at: float


class MapStore:
    """
    Cache of decoded source maps keyed by generated script URL.

    Explicitly constructed and passed to its users; independent stores do
    not share state.
    """

    def __init__(
        self,
        fetcher: MapDocumentFetcher,
        policy: Optional[CachePolicy] = None,
        fetch_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the map store.

        Args:
            fetcher: Source of raw map documents
            policy: Eviction policy (unbounded when omitted)
            fetch_timeout: Seconds before a fetch is abandoned as unavailable
            clock: Monotonic clock used for TTL eviction
        """
        self._fetcher = fetcher
        self._policy = policy or CachePolicy.unbounded()
        self._fetch_timeout = fetch_timeout
        self._clock = clock

        self._entries: "OrderedDict[str, _CacheEntry]" = OrderedDict()
        self._in_flight: Dict[str, "asyncio.Task[SourceMap]"] = {}

        self.decode_count = 0
        self.hits = 0
        self.misses = 0

    @property
    def policy(self) -> CachePolicy:
        return self._policy

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, script_url: str) -> bool:
        return self._lookup(script_url, touch=False) is not None

    async def get(self, script_url: str) -> SourceMap:
        """
        Return the decoded source map for a generated script.

        Args:
            script_url: URL of the generated script

        Returns:
            Fully decoded SourceMap

        Raises:
            MapUnavailable: If the map cannot be located, read, parsed or decoded
        """
        source_map = self._lookup(script_url)
        if source_map is not None:
            self.hits += 1
            return source_map

        self.misses += 1
        task = self._in_flight.get(script_url)
        if task is None:
            task = asyncio.ensure_future(self._load(script_url))
            self._in_flight[script_url] = task
            task.add_done_callback(lambda done: self._finish_load(script_url, done))

        # Shielded so one cancelled waiter does not cancel the shared load
        return await asyncio.shield(task)

    def evict(self, script_url: str) -> bool:
        """Drop one cached entry. Returns True if it was present."""
        return self._entries.pop(script_url, None) is not None

    def clear(self) -> int:
        """Drop every cached entry. Returns the number dropped."""
        count = len(self._entries)
        self._entries.clear()
        return count

    def stats(self) -> Dict[str, object]:
        return {
            "policy": self._policy.kind.value,
            "entries": len(self._entries),
            "in_flight": len(self._in_flight),
            "hits": self.hits,
            "misses": self.misses,
            "decodes": self.decode_count,
        }

    def _finish_load(self, script_url: str, task: "asyncio.Task[SourceMap]") -> None:
        if self._in_flight.get(script_url) is task:
            del self._in_flight[script_url]
        # Mark the failure as retrieved when every waiter was cancelled
        if not task.cancelled():
            task.exception()

    def _lookup(self, script_url: str, touch: bool = True) -> Optional[SourceMap]:
        entry = self._entries.get(script_url)
        if entry is None:
            return None

        if self._policy.kind == CachePolicyKind.TTL:
            if self._clock() - entry.loaded_at > self._policy.ttl_seconds:
                del self._entries[script_url]
                logger.debug(f"Source map for {script_url} expired", extra={"script_url": script_url})
                return None

        if touch and self._policy.kind == CachePolicyKind.MAX_ENTRIES:
            self._entries.move_to_end(script_url)

        return entry.source_map

    def _store(self, script_url: str, source_map: SourceMap) -> None:
        self._entries[script_url] = _CacheEntry(source_map=source_map, loaded_at=self._clock())
        self._entries.move_to_end(script_url)

        if self._policy.kind == CachePolicyKind.MAX_ENTRIES:
            while len(self._entries) > self._policy.max_entries:
                evicted_url, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted source map for {evicted_url}", extra={"script_url": evicted_url})

    async def _load(self, script_url: str) -> SourceMap:
        try:
            if self._fetch_timeout is not None:
                document = await asyncio.wait_for(self._fetcher.fetch(script_url), self._fetch_timeout)
            else:
                document = await self._fetcher.fetch(script_url)
        except asyncio.TimeoutError as e:
            raise MapUnavailable(script_url, f"fetch timed out after {self._fetch_timeout}s") from e

        try:
            source_map = SourceMap.from_json(document)
        except ValidationError as e:
            raise MapUnavailable(script_url, f"invalid source map document: {e.error_count()} errors") from e

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._decode, source_map)
        except MalformedMappings as e:
            raise MapUnavailable(script_url, f"malformed mappings: {e}") from e

        self._store(script_url, source_map)
        logger.info(
            f"Source map cached for {script_url}",
            extra={"script_url": script_url, "lines": source_map.line_count},
        )
        return source_map

    def _decode(self, source_map: SourceMap) -> None:
        self.decode_count += 1
        source_map.decode()
