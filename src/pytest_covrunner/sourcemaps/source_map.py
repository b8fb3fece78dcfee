"""Source Map v3 parsing and position lookup.

Generated Python files may ship a ``<file>.py.map`` describing where each
generated position came from. Only the parts needed to translate coverage
locations are implemented: decoding the Base64 VLQ ``mappings`` string and
finding the original position for a generated one.

Example:
    >>> source_map = SourceMap.from_dict({'version': 3, 'sources': ['a.tmpl'], 'mappings': 'AAEA'})
    >>> source_map.original_position_for(1, 0)
    OriginalPosition(source='a.tmpl', line=3, column=0)
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
import posixpath
from typing import Any


BASE64_ALPHABET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/'
BASE64_VALUES = {char: index for index, char in enumerate(BASE64_ALPHABET)}

VLQ_BASE_SHIFT = 5
VLQ_CONTINUATION_BIT = 1 << VLQ_BASE_SHIFT
VLQ_BASE_MASK = VLQ_CONTINUATION_BIT - 1


def decode_vlq(segment: str) -> list[int]:
    """Decode one comma-free segment of Base64 VLQ values.

    Args:
        segment: Encoded segment, e.g. ``'AAgBC'``.

    Returns:
        The signed integers in the segment.

    Raises:
        ValueError: If the segment contains an invalid character or ends
            in the middle of a value.
    """
    values: list[int] = []
    shift = 0
    accumulator = 0
    for char in segment:
        if char not in BASE64_VALUES:
            raise ValueError(f'Invalid Base64 VLQ character: {char!r}')
        digit = BASE64_VALUES[char]
        accumulator += (digit & VLQ_BASE_MASK) << shift
        if digit & VLQ_CONTINUATION_BIT:
            shift += VLQ_BASE_SHIFT
            continue
        negative = accumulator & 1
        value = accumulator >> 1
        values.append(-value if negative else value)
        shift = 0
        accumulator = 0
    if shift:
        raise ValueError(f'Truncated Base64 VLQ segment: {segment!r}')
    return values


@dataclass(frozen=True)
class Mapping:
    """One decoded mapping segment (all values 0-based)."""

    generated_line: int
    generated_column: int
    source_index: int
    original_line: int
    original_column: int


@dataclass(frozen=True)
class OriginalPosition:
    """A position in an original source (1-based line, 0-based column)."""

    source: str
    line: int
    column: int


class SourceMap:
    """A decoded Source Map v3.

    Attributes:
        sources: Source paths, already joined with ``sourceRoot``.
    """

    def __init__(self, sources: list[str], mappings: list[Mapping]) -> None:
        self.sources = sources
        self._lines: dict[int, list[Mapping]] = {}
        for mapping in mappings:
            self._lines.setdefault(mapping.generated_line, []).append(mapping)
        for segments in self._lines.values():
            segments.sort(key=lambda m: m.generated_column)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceMap:
        """Parse a source map object.

        Args:
            data: The parsed JSON of a Source Map v3.

        Returns:
            The decoded source map.

        Raises:
            ValueError: If the map is not a version 3 map, has fields of the
                wrong type or its mappings cannot be decoded.
        """
        if data.get('version') != 3:
            raise ValueError(f'Unsupported source map version: {data.get("version")!r}')
        source_root = data.get('sourceRoot') or ''
        raw_sources = data.get('sources', [])
        encoded = data.get('mappings', '')
        if not isinstance(source_root, str):
            raise ValueError(f'sourceRoot must be a string, got {type(source_root).__name__}')
        if not isinstance(raw_sources, list) or not all(isinstance(source, str) for source in raw_sources):
            raise ValueError('sources must be a list of strings')
        if not isinstance(encoded, str):
            raise ValueError(f'mappings must be a string, got {type(encoded).__name__}')
        sources = [posixpath.join(source_root, source) if source_root else source for source in raw_sources]
        return cls(sources, list(cls._decode_mappings(encoded)))

    @staticmethod
    def _decode_mappings(encoded: str) -> list[Mapping]:
        """Decode the ``mappings`` string into absolute mapping segments.

        Generated columns are relative within a line; source index, original
        line and original column are relative across the whole string.
        Segments without source information are skipped.
        """
        mappings: list[Mapping] = []
        source_index = 0
        original_line = 0
        original_column = 0
        for generated_line, line in enumerate(encoded.split(';')):
            generated_column = 0
            for segment in line.split(','):
                if not segment:
                    continue
                values = decode_vlq(segment)
                generated_column += values[0]
                if len(values) < 4:
                    continue
                source_index += values[1]
                original_line += values[2]
                original_column += values[3]
                mappings.append(Mapping(generated_line, generated_column, source_index, original_line, original_column))
        return mappings

    def original_position_for(self, line: int, column: int) -> OriginalPosition | None:
        """Translate a generated position to its original position.

        Uses the closest mapping at or before ``column`` on the same generated
        line, falling back to the first mapping of the line. The column offset
        from that mapping is carried over.

        Args:
            line: Generated line (1-based).
            column: Generated column (0-based).

        Returns:
            The original position, or None if the line has no mappings.
        """
        segments = self._lines.get(line - 1)
        if not segments:
            return None
        columns = [segment.generated_column for segment in segments]
        index = bisect.bisect_right(columns, column) - 1
        segment = segments[max(index, 0)]
        offset = max(column - segment.generated_column, 0)
        if segment.source_index >= len(self.sources):
            return None
        return OriginalPosition(
            source=self.sources[segment.source_index],
            line=segment.original_line + 1,
            column=segment.original_column + offset,
        )
