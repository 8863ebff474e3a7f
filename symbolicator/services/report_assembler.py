"""
Report Assembler: resolves captured frames and hands reports to storage.

Every failure is local to the frame it concerns: a frame whose map is
unavailable, or whose position no segment covers, keeps its minified
location. A report is produced for every captured event.
"""

import asyncio
import time
from typing import Optional

from symbolicator.models.error_event import RawErrorEvent
from symbolicator.models.frame import RawFrame, ResolvedFrame
from symbolicator.models.report import ResolvedErrorReport
from symbolicator.services.map_store import MapStore, MapUnavailable
from symbolicator.services.transport import ReportTransport
from symbolicator.sourcemap.resolver import MappingResolver
from symbolicator.utils.logging import get_logger, log_error_with_context
from symbolicator.utils.metrics import ResolutionMetrics


logger = get_logger(__name__)


class ReportAssembler:
    """Builds ResolvedErrorReports from RawErrorEvents."""

    def __init__(
        self,
        map_store: MapStore,
        transport: ReportTransport,
        metrics: Optional[ResolutionMetrics] = None,
    ):
        """
        Initialize the assembler.

        Args:
            map_store: Store supplying decoded source maps
            transport: Storage collaborator receiving finished reports
            metrics: Metrics collector (a new one is created when omitted)
        """
        self._map_store = map_store
        self._transport = transport
        self._metrics = metrics or ResolutionMetrics()

    @property
    def map_store(self) -> MapStore:
        return self._map_store

    @property
    def transport(self) -> ReportTransport:
        return self._transport

    @property
    def metrics(self) -> ResolutionMetrics:
        return self._metrics

    async def resolve_frame(self, frame: RawFrame) -> ResolvedFrame:
        """
        Resolve one frame, falling back to its raw position on failure.

        Args:
            frame: Minified frame

        Returns:
            Original position, or the unresolved fallback frame
        """
        try:
            source_map = await self._map_store.get(frame.script_url)
        except MapUnavailable as e:
            logger.debug(
                f"Keeping raw frame, map unavailable: {e.reason}",
                extra={"script_url": frame.script_url},
            )
            self._metrics.record_map_unavailable()
            return ResolvedFrame.unresolved(frame)

        position = MappingResolver(source_map).original_position_for(frame.line, frame.column)
        if position is None:
            logger.debug(
                f"Keeping raw frame, no segment covers {frame.line}:{frame.column}",
                extra={"script_url": frame.script_url},
            )
            self._metrics.record_frame_unresolved()
            return ResolvedFrame.unresolved(frame)

        self._metrics.record_frame_resolved()
        return position

    async def assemble(self, event: RawErrorEvent) -> ResolvedErrorReport:
        """
        Resolve every frame of an event, preserving frame order.

        Args:
            event: Captured event

        Returns:
            ResolvedErrorReport with one frame per input frame
        """
        start_time = time.time()

        frames = await asyncio.gather(*(self.resolve_frame(frame) for frame in event.frames))

        report = ResolvedErrorReport(
            event_id=event.event_id,
            message=event.message,
            frames=list(frames),
            captured_at=event.captured_at,
            origin=event.origin,
            degraded=event.degraded,
            context=event.context,
        )

        duration_ms = (time.time() - start_time) * 1000
        self._metrics.record_report(
            duration_ms,
            degraded=event.degraded,
            malformed_frames=event.malformed_frames,
        )
        logger.info(
            f"Report assembled: {report.resolved_count}/{len(report.frames)} frames resolved",
            extra={
                "event_id": event.event_id,
                "origin": event.origin.value,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return report

    async def submit(self, event: RawErrorEvent) -> ResolvedErrorReport:
        """
        Assemble a report and hand it to the transport.

        Transport failures are logged and counted, never retried or raised
        here; retries are the transport's concern.

        Returns:
            The assembled report
        """
        report = await self.assemble(event)

        try:
            await self._transport.send(report)
        except Exception as e:
            self._metrics.record_transport_failure()
            log_error_with_context(
                logger,
                f"Failed to deliver report {report.event_id}",
                e,
                event_id=report.event_id,
            )

        return report
