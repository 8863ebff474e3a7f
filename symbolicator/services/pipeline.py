"""
Process-wide pipeline wiring.

Builds the fetcher, map store, transport and report assembler from settings
once per process. API routes receive the assembler through FastAPI
dependencies, so tests can substitute their own instance.
"""

from typing import Optional

from symbolicator.config import settings
from symbolicator.services.map_fetcher import SourceMapFetcher
from symbolicator.services.map_store import MapStore
from symbolicator.services.report_assembler import ReportAssembler
from symbolicator.services.transport import LoggingTransport, RedisReportTransport, ReportTransport
from symbolicator.utils.logging import get_logger


logger = get_logger(__name__)

_fetcher: Optional[SourceMapFetcher] = None
_assembler: Optional[ReportAssembler] = None


def build_transport() -> ReportTransport:
    """Redis queue transport when configured, log transport otherwise."""
    if settings.redis_url:
        return RedisReportTransport(settings.redis_url, queue_key=settings.report_queue_key)
    return LoggingTransport()


def get_report_assembler() -> ReportAssembler:
    """
    Get or create the global report assembler.

    Returns:
        ReportAssembler instance
    """
    global _fetcher, _assembler

    if _assembler is None:
        _fetcher = SourceMapFetcher(
            map_root=settings.map_root,
            timeout=settings.map_fetch_timeout_seconds or 10.0,
            max_retries=settings.map_fetch_retries,
            allowed_hosts=settings.map_allowed_hosts,
        )
        map_store = MapStore(
            _fetcher,
            policy=settings.cache_policy(),
            fetch_timeout=settings.map_fetch_timeout_seconds,
        )
        _assembler = ReportAssembler(map_store, build_transport())
        logger.info(
            "Report pipeline created",
            extra={"cache_policy": map_store.policy.kind.value},
        )

    return _assembler


async def start_pipeline() -> ReportAssembler:
    """Create the pipeline and open transport connections."""
    assembler = get_report_assembler()
    await assembler.transport.initialize()
    return assembler


async def stop_pipeline() -> None:
    """Close the fetcher and transport and forget the pipeline."""
    global _fetcher, _assembler

    if _assembler is not None:
        await _assembler.transport.close()
    if _fetcher is not None:
        await _fetcher.close()

    _fetcher = None
    _assembler = None
