"""
Utility modules for the JS error symbolicator.
"""

from symbolicator.utils.logging import (
    get_logger,
    setup_logging,
    log_capture,
    log_map_fetch,
    log_error_with_context,
)
from symbolicator.utils.metrics import (
    ResolutionMetrics,
    emit_metric,
)
from symbolicator.utils.resilience import retry_with_backoff

__all__ = [
    "get_logger",
    "setup_logging",
    "log_capture",
    "log_map_fetch",
    "log_error_with_context",
    "ResolutionMetrics",
    "emit_metric",
    "retry_with_backoff",
]
