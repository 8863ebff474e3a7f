"""Source map (revision 3) document model."""

import posixpath
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from symbolicator.sourcemap.mappings import MalformedMappings, Segment, decode_mappings

SOURCE_MAP_VERSION = 3


class SourceMap(BaseModel):
    """
    Parsed source map document.

    Frozen: cached maps are shared between requests. The segment table is
    decoded lazily on first use (or eagerly through :meth:`decode`) and never
    changes afterwards.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    version: int
    sources: List[str] = []
    names: List[str] = []
    mappings: str
    file: Optional[str] = None
    source_root: Optional[str] = Field(default=None, alias="sourceRoot")
    sources_content: Optional[List[Optional[str]]] = Field(default=None, alias="sourcesContent")

    _lines: Optional[List[List[Segment]]] = PrivateAttr(default=None)

    @field_validator("version")
    @classmethod
    def check_version(cls, value: int) -> int:
        if value != SOURCE_MAP_VERSION:
            raise ValueError(f"Unsupported source map version {value}, expected {SOURCE_MAP_VERSION}")
        return value

    @classmethod
    def from_json(cls, document: str) -> "SourceMap":
        """Parse and validate a JSON source map document."""
        return cls.model_validate_json(document)

    @property
    def is_decoded(self) -> bool:
        return self._lines is not None

    def decode(self) -> "SourceMap":
        """
        Decode the mappings string if that has not happened yet.

        Raises:
            MalformedMappings: If the mappings are invalid or reference a
                source or name index outside the document
        """
        if self._lines is None:
            lines = decode_mappings(self.mappings)
            self._check_indices(lines)
            self._lines = lines
        return self

    def _check_indices(self, lines: List[List[Segment]]) -> None:
        for segments in lines:
            for segment in segments:
                if segment.source_index is not None and segment.source_index >= len(self.sources):
                    raise MalformedMappings(
                        f"Source index {segment.source_index} out of range "
                        f"({len(self.sources)} sources)"
                    )
                if segment.name_index is not None and segment.name_index >= len(self.names):
                    raise MalformedMappings(
                        f"Name index {segment.name_index} out of range ({len(self.names)} names)"
                    )

    @property
    def decoded_segments(self) -> List[Segment]:
        """All segments in document order."""
        self.decode()
        return [segment for segments in self._lines for segment in segments]

    @property
    def line_count(self) -> int:
        self.decode()
        return len(self._lines)

    def segments_for_line(self, generated_line: int) -> List[Segment]:
        """Segments of a 0-based generated line (empty when out of range)."""
        self.decode()
        if 0 <= generated_line < len(self._lines):
            return self._lines[generated_line]
        return []

    def resolve_source(self, source_index: int) -> str:
        """Source path with ``sourceRoot`` applied."""
        source = self.sources[source_index]
        if not self.source_root or "://" in source or source.startswith("/"):
            return source
        if "://" in self.source_root:
            return self.source_root.rstrip("/") + "/" + source
        return posixpath.join(self.source_root, source)

    def source_line(self, source_index: int, line: int) -> Optional[str]:
        """Line of embedded original source (0-based), if ``sourcesContent`` has it."""
        if not self.sources_content or source_index >= len(self.sources_content):
            return None
        content = self.sources_content[source_index]
        if content is None:
            return None
        source_lines = content.splitlines()
        if 0 <= line < len(source_lines):
            return source_lines[line]
        return None
