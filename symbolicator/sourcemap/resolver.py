"""
Mapping Resolver: point lookups in a decoded source map.
"""

from bisect import bisect_right
from operator import attrgetter
from typing import Optional

from symbolicator.models.frame import ResolvedFrame
from symbolicator.sourcemap.document import SourceMap


_generated_column = attrgetter("generated_column")


class PositionUnresolved(LookupError):
    """Raised when no segment covers a generated position."""

    def __init__(self, line: int, column: int):
        super().__init__(f"No original position for generated {line}:{column}")
        self.line = line
        self.column = column


class MappingResolver:
    """Answers original position queries against one source map."""

    def __init__(self, source_map: SourceMap):
        self._source_map = source_map.decode()

    @property
    def source_map(self) -> SourceMap:
        return self._source_map

    def original_position_for(self, line: int, column: int) -> Optional[ResolvedFrame]:
        """
        Find the original position of a generated location.

        Picks the segment with the greatest generated column <= ``column`` on
        that line; among segments sharing that column the last decoded wins.

        Args:
            line: Generated line (1-based)
            column: Generated column (0-based)

        Returns:
            ResolvedFrame with a 1-based line and 0-based column, or None when
            no segment with an original position covers the location
        """
        if line < 1 or column < 0:
            return None

        segments = self._source_map.segments_for_line(line - 1)
        if not segments:
            return None

        index = bisect_right(segments, column, key=_generated_column) - 1
        if index < 0:
            return None

        segment = segments[index]
        if not segment.has_original:
            return None

        name = None
        if segment.name_index is not None:
            name = self._source_map.names[segment.name_index]

        return ResolvedFrame(
            source=self._source_map.resolve_source(segment.source_index),
            line=segment.original_line + 1,
            column=segment.original_column,
            name=name,
            context_line=self._source_map.source_line(segment.source_index, segment.original_line),
        )

    def require_position(self, line: int, column: int) -> ResolvedFrame:
        """Like :meth:`original_position_for` but raises PositionUnresolved."""
        position = self.original_position_for(line, column)
        if position is None:
            raise PositionUnresolved(line, column)
        return position
