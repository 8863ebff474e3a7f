"""
Decoding and encoding of source map ``mappings`` strings.

Groups separated by ``;`` are generated lines; segments inside a group are
separated by ``,``. Every segment field is stored as a delta:

- ``generated_column`` against the previous segment on the same line,
  reset to 0 at the start of every line
- ``source_index``, ``original_line``, ``original_column`` and
  ``name_index`` against their previous value anywhere in the document

All positions in this module are 0-based, as in the wire format.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from symbolicator.sourcemap.vlq import VLQDecodeError, decode_vlq_fields, encode_vlq_fields

VALID_FIELD_COUNTS = (1, 4, 5)


class MalformedMappings(ValueError):
    """Raised when a mappings string cannot be decoded."""
    pass


@dataclass(frozen=True)
class Segment:
    """One decoded mapping between a generated and an original position."""

    generated_line: int
    generated_column: int
    source_index: Optional[int] = None
    original_line: Optional[int] = None
    original_column: Optional[int] = None
    name_index: Optional[int] = None

    @property
    def has_original(self) -> bool:
        return self.original_line is not None


@dataclass
class DecodeState:
    """Running absolute values that segment deltas are applied to."""

    generated_column: int = 0
    source_index: int = 0
    original_line: int = 0
    original_column: int = 0
    name_index: int = 0

    def start_line(self) -> None:
        # Only the generated column is scoped to a line
        self.generated_column = 0


def _check_non_negative(state: DecodeState, field_count: int, raw: str) -> None:
    values = [state.generated_column]
    if field_count >= 4:
        values += [state.source_index, state.original_line, state.original_column]
    if field_count == 5:
        values.append(state.name_index)
    if any(value < 0 for value in values):
        raise MalformedMappings(f"Segment {raw!r} decodes to a negative position")


def decode_mappings(mappings: str) -> List[List[Segment]]:
    """
    Decode a mappings string into segments grouped by generated line.

    Args:
        mappings: Raw ``mappings`` value of a source map

    Returns:
        One list of segments per generated line, in decode order

    Raises:
        MalformedMappings: On bad VLQ data, a field count other than 1, 4 or 5,
            an empty segment, a negative absolute value, or a generated column
            that decreases within a line
    """
    lines: List[List[Segment]] = []
    state = DecodeState()

    for generated_line, group in enumerate(mappings.split(";")):
        state.start_line()
        segments: List[Segment] = []

        if group:
            for raw in group.split(","):
                if not raw:
                    raise MalformedMappings(f"Empty segment on generated line {generated_line}")
                try:
                    fields = decode_vlq_fields(raw)
                except VLQDecodeError as e:
                    raise MalformedMappings(str(e)) from e

                if len(fields) not in VALID_FIELD_COUNTS:
                    raise MalformedMappings(
                        f"Segment {raw!r} has {len(fields)} fields, expected 1, 4 or 5"
                    )

                previous_column = state.generated_column
                state.generated_column += fields[0]
                if segments and state.generated_column < previous_column:
                    raise MalformedMappings(
                        f"Segments on generated line {generated_line} are not sorted by column"
                    )

                if len(fields) == 1:
                    _check_non_negative(state, 1, raw)
                    segments.append(Segment(generated_line, state.generated_column))
                    continue

                state.source_index += fields[1]
                state.original_line += fields[2]
                state.original_column += fields[3]
                if len(fields) == 5:
                    state.name_index += fields[4]
                _check_non_negative(state, len(fields), raw)

                segments.append(
                    Segment(
                        generated_line=generated_line,
                        generated_column=state.generated_column,
                        source_index=state.source_index,
                        original_line=state.original_line,
                        original_column=state.original_column,
                        name_index=state.name_index if len(fields) == 5 else None,
                    )
                )

        lines.append(segments)

    return lines


def encode_mappings(lines: Sequence[Sequence[Segment]]) -> str:
    """
    Encode segments grouped by generated line back into a mappings string.

    Inverse of :func:`decode_mappings`.
    """
    state = DecodeState()
    groups = []

    for segments in lines:
        state.start_line()
        encoded = []
        for segment in segments:
            fields = [segment.generated_column - state.generated_column]
            state.generated_column = segment.generated_column

            if segment.original_line is not None:
                fields += [
                    segment.source_index - state.source_index,
                    segment.original_line - state.original_line,
                    segment.original_column - state.original_column,
                ]
                state.source_index = segment.source_index
                state.original_line = segment.original_line
                state.original_column = segment.original_column

                if segment.name_index is not None:
                    fields.append(segment.name_index - state.name_index)
                    state.name_index = segment.name_index

            encoded.append(encode_vlq_fields(fields))
        groups.append(",".join(encoded))

    return ";".join(groups)
