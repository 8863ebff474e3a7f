"""
Source map decoding and position resolution.

This package provides the base64 VLQ codec, the mappings decoder/encoder,
the source map document model and the point-query resolver.
"""

from symbolicator.sourcemap.document import SourceMap
from symbolicator.sourcemap.mappings import (
    DecodeState,
    MalformedMappings,
    Segment,
    decode_mappings,
    encode_mappings,
)
from symbolicator.sourcemap.resolver import MappingResolver, PositionUnresolved
from symbolicator.sourcemap.vlq import VLQDecodeError, decode_vlq, encode_vlq

__all__ = [
    'SourceMap',
    'Segment',
    'DecodeState',
    'MalformedMappings',
    'decode_mappings',
    'encode_mappings',
    'MappingResolver',
    'PositionUnresolved',
    'VLQDecodeError',
    'decode_vlq',
    'encode_vlq',
]
