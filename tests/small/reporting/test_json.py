"""Tests for the JSON reporters."""

from __future__ import annotations

import json

from pytest_covrunner.coverage.mapper import CoverageMap
from pytest_covrunner.reporting.json_reporter import JsonReporter, JsonSummaryReporter


class TestJsonReporter:
    """Tests for coverage-final.json."""

    def test_render_writes_coverage_final(self, report_context, report_dir):
        JsonReporter().render(report_context)

        assert (report_dir / 'coverage-final.json').exists()

    def test_output_round_trips_into_a_coverage_map(self, report_context, coverage_map):
        data = json.loads(JsonReporter().to_json(report_context))

        restored = CoverageMap.from_dict(data)

        assert restored.files() == coverage_map.files()
        for path in coverage_map:
            assert restored.file_coverage_for(path) == coverage_map.file_coverage_for(path)

    def test_entries_use_istanbul_layout(self, report_context, source_dir):
        data = json.loads(JsonReporter().to_json(report_context))

        entry = data[str(source_dir / 'auth.py')]
        assert entry['s'] == {'0': 1, '1': 1, '2': 1, '3': 0}
        assert entry['f'] == {'0': 1}
        assert entry['b'] == {'0': [1, 0]}


class TestJsonSummaryReporter:
    """Tests for coverage-summary.json."""

    def test_render_writes_coverage_summary(self, report_context, report_dir):
        JsonSummaryReporter().render(report_context)

        assert (report_dir / 'coverage-summary.json').exists()

    def test_total_and_per_file_entries(self, report_context, source_dir):
        data = json.loads(JsonSummaryReporter().to_json(report_context))

        assert data['total']['statements'] == {'total': 6, 'covered': 3, 'skipped': 0, 'pct': 50.0}
        assert data[str(source_dir / 'auth.py')]['lines']['pct'] == 75.0
        assert data[str(source_dir / 'util' / 'strings.py')]['functions']['pct'] == 100.0
