"""Business logic services package."""

from symbolicator.services.map_store import (
    MapStore,
    MapUnavailable,
)
from symbolicator.services.map_fetcher import (
    SourceMapFetcher,
    decode_data_url,
    find_source_mapping_url,
)
from symbolicator.services.transport import (
    LoggingTransport,
    RedisReportTransport,
    ReportTransport,
    TransportError,
)
from symbolicator.services.report_assembler import ReportAssembler
from symbolicator.services.pipeline import (
    get_report_assembler,
    start_pipeline,
    stop_pipeline,
)

__all__ = [
    'MapStore',
    'MapUnavailable',
    'SourceMapFetcher',
    'decode_data_url',
    'find_source_mapping_url',
    'LoggingTransport',
    'RedisReportTransport',
    'ReportTransport',
    'TransportError',
    'ReportAssembler',
    'get_report_assembler',
    'start_pipeline',
    'stop_pipeline',
]
