"""Tests for Source Map v3 decoding."""

from __future__ import annotations

import pytest

from pytest_covrunner.sourcemaps.source_map import OriginalPosition, SourceMap, decode_vlq


class TestDecodeVlq:
    """Tests for Base64 VLQ decoding."""

    @pytest.mark.parametrize(
        ('segment', 'expected'),
        [
            ('A', [0]),
            ('C', [1]),
            ('D', [-1]),
            ('E', [2]),
            ('gB', [16]),
            ('AAgBC', [0, 0, 16, 1]),
        ],
    )
    def test_decodes_values(self, segment, expected):
        assert decode_vlq(segment) == expected

    def test_invalid_character_raises(self):
        with pytest.raises(ValueError, match='Invalid'):
            decode_vlq('A!')

    def test_truncated_segment_raises(self):
        with pytest.raises(ValueError, match='Truncated'):
            decode_vlq('g')


class TestSourceMap:
    """Tests for SourceMap parsing and lookup."""

    def test_rejects_other_versions(self):
        with pytest.raises(ValueError, match='version'):
            SourceMap.from_dict({'version': 2, 'sources': [], 'mappings': ''})

    @pytest.mark.parametrize(
        'data',
        [
            {'version': 3, 'sources': ['a.tmpl'], 'mappings': None},
            {'version': 3, 'sources': ['a.tmpl'], 'mappings': ['AAAA']},
            {'version': 3, 'sources': [None], 'mappings': 'AAAA'},
            {'version': 3, 'sources': 'a.tmpl', 'mappings': 'AAAA'},
            {'version': 3, 'sourceRoot': 7, 'sources': ['a.tmpl'], 'mappings': 'AAAA'},
        ],
    )
    def test_rejects_fields_of_the_wrong_type(self, data):
        with pytest.raises(ValueError, match='must be'):
            SourceMap.from_dict(data)

    def test_source_root_is_prefixed(self):
        source_map = SourceMap.from_dict(
            {'version': 3, 'sourceRoot': 'templates', 'sources': ['a.tmpl'], 'mappings': ''}
        )

        assert source_map.sources == ['templates/a.tmpl']

    def test_lines_are_relative_across_the_mappings(self):
        source_map = SourceMap.from_dict({'version': 3, 'sources': ['a.tmpl'], 'mappings': 'AAEA;AACA'})

        assert source_map.original_position_for(1, 0) == OriginalPosition('a.tmpl', 3, 0)
        assert source_map.original_position_for(2, 0) == OriginalPosition('a.tmpl', 4, 0)

    def test_column_offset_is_carried_from_closest_segment(self):
        source_map = SourceMap.from_dict({'version': 3, 'sources': ['a.tmpl'], 'mappings': 'AAAA,IAAI'})

        assert source_map.original_position_for(1, 2) == OriginalPosition('a.tmpl', 1, 2)
        assert source_map.original_position_for(1, 6) == OriginalPosition('a.tmpl', 1, 6)

    def test_unmapped_line_returns_none(self):
        source_map = SourceMap.from_dict({'version': 3, 'sources': ['a.tmpl'], 'mappings': 'AAAA'})

        assert source_map.original_position_for(5, 0) is None

    def test_segments_without_source_are_skipped(self):
        source_map = SourceMap.from_dict({'version': 3, 'sources': ['a.tmpl'], 'mappings': 'A'})

        assert source_map.original_position_for(1, 0) is None

    def test_second_source_is_selected_by_index(self):
        source_map = SourceMap.from_dict({'version': 3, 'sources': ['a.tmpl', 'b.tmpl'], 'mappings': 'AAAA;ACAA'})

        assert source_map.original_position_for(2, 0).source == 'b.tmpl'
