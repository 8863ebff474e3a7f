"""
Metrics collection and emission for observability.

This module provides metrics tracking for:
- Reports assembled (and how many were degraded captures)
- Frame resolution outcomes
- Report assembly latency
"""

from datetime import datetime, timezone
from typing import Dict, Any

from symbolicator.utils.logging import get_logger

logger = get_logger(__name__)


class ResolutionMetrics:
    """
    Collects metrics across report assembly.

    Tracks:
    - Reports assembled and degraded reports
    - Frames resolved, left unresolved, or without an available map
    - Malformed frames dropped at capture
    - Assembly latency
    """

    def __init__(self):
        """Initialize metrics collector."""
        self.started_at: datetime = datetime.now(timezone.utc)

        # Report metrics
        self.reports_assembled: int = 0
        self.degraded_reports: int = 0

        # Frame metrics
        self.frames_resolved: int = 0
        self.frames_unresolved: int = 0
        self.frames_map_unavailable: int = 0
        self.malformed_frames: int = 0

        # Latency metrics
        self.assembly_latencies_ms: list[float] = []

        # Transport metrics
        self.transport_failures: int = 0

    def record_frame_resolved(self) -> None:
        self.frames_resolved += 1

    def record_frame_unresolved(self) -> None:
        self.frames_unresolved += 1

    def record_map_unavailable(self) -> None:
        self.frames_map_unavailable += 1

    def record_transport_failure(self) -> None:
        self.transport_failures += 1

    def record_report(self, duration_ms: float, degraded: bool = False, malformed_frames: int = 0) -> None:
        """
        Record an assembled report.

        Args:
            duration_ms: Assembly duration in milliseconds
            degraded: Whether the report came from a degraded capture
            malformed_frames: Frames dropped as malformed at capture
        """
        self.reports_assembled += 1
        if degraded:
            self.degraded_reports += 1
        self.malformed_frames += malformed_frames
        self.assembly_latencies_ms.append(duration_ms)

    def get_metrics_summary(self) -> Dict[str, Any]:
        """
        Get summary of collected metrics.

        Returns:
            Dictionary of metrics
        """
        summary: Dict[str, Any] = {
            "started_at": self.started_at.isoformat(),
            "reports_assembled": self.reports_assembled,
            "degraded_reports": self.degraded_reports,
            "frames_resolved": self.frames_resolved,
            "frames_unresolved": self.frames_unresolved,
            "frames_map_unavailable": self.frames_map_unavailable,
            "malformed_frames": self.malformed_frames,
            "transport_failures": self.transport_failures,
        }

        if self.assembly_latencies_ms:
            latencies = self.assembly_latencies_ms
            summary["assembly_latency"] = {
                "count": len(latencies),
                "min_ms": round(min(latencies), 2),
                "max_ms": round(max(latencies), 2),
                "avg_ms": round(sum(latencies) / len(latencies), 2),
            }

        return summary


def emit_metric(metric_name: str, value: float, **tags: Any) -> None:
    """
    Emit a metric.

    Metrics are written as structured log records; a log shipper can forward
    them to Prometheus, CloudWatch, DataDog, etc.

    Args:
        metric_name: Metric name
        value: Metric value
        **tags: Metric tags/labels
    """
    logger.info(
        f"Metric: {metric_name}",
        extra={
            "metric_name": metric_name,
            "metric_value": value,
            "metric_tags": tags,
        }
    )
