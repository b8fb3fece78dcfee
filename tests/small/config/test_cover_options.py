"""Tests for configuration loading."""

from __future__ import annotations

import json

import pytest

from pytest_covrunner.config import CoverOptions, RunnerOptions, read_cover_options
from pytest_covrunner.errors import ConfigurationError
from pytest_covrunner.reporting.formats import ReportFormat


class TestRunnerOptionsFromDict:
    """Tests for reading the camelCase artifact keys."""

    def test_defaults_for_empty_object(self):
        options = RunnerOptions.from_dict({})

        assert options == RunnerOptions()
        assert options.enabled is False
        assert options.relative_coverage_dir == 'coverage'
        assert options.reports == [ReportFormat.LCOVONLY]

    def test_reads_every_key(self):
        options = RunnerOptions.from_dict(
            {
                'enabled': True,
                'relativeCoverageDir': 'out/cov',
                'relativeSourcePath': '../src',
                'ignorePatterns': ['**/generated/*'],
                'reports': ['json', 'html'],
                'verbose': True,
            }
        )

        assert options == RunnerOptions(
            enabled=True,
            relative_coverage_dir='out/cov',
            relative_source_path='../src',
            ignore_patterns=['**/generated/*'],
            reports=[ReportFormat.JSON, ReportFormat.HTML],
            verbose=True,
        )

    def test_unknown_report_format_is_rejected(self):
        with pytest.raises(ConfigurationError, match='Unknown report format'):
            RunnerOptions.from_dict({'reports': ['lcov', 'docx']})

    @pytest.mark.parametrize(
        'data',
        [
            {'ignorePatterns': '*.py'},
            {'ignorePatterns': [1]},
            {'relativeSourcePath': 5},
            {'relativeCoverageDir': ['coverage']},
        ],
    )
    def test_wrong_types_are_rejected(self, data):
        with pytest.raises(ConfigurationError):
            RunnerOptions.from_dict(data)


class TestReadCoverOptions:
    """Tests for locating and parsing the artifact."""

    def test_missing_artifact_returns_none(self, tmp_path):
        assert read_cover_options(tmp_path, CoverOptions()) is None

    def test_reads_default_json_artifact(self, tmp_path):
        (tmp_path / 'coverconfig.json').write_text(json.dumps({'enabled': True, 'relativeSourcePath': 'src'}))

        options = read_cover_options(tmp_path, CoverOptions())

        assert options is not None
        assert options.enabled
        assert options.relative_source_path == 'src'

    def test_custom_artifact_path(self, tmp_path):
        (tmp_path / 'config').mkdir()
        (tmp_path / 'config' / 'coverage.json').write_text(json.dumps({'verbose': True}))

        options = read_cover_options(tmp_path, CoverOptions(cover_config='config/coverage.json'))

        assert options is not None
        assert options.verbose

    def test_reads_toml_section(self, tmp_path):
        (tmp_path / 'pyproject.toml').write_text(
            '[tool.pytest-covrunner]\n'
            'enabled = true\n'
            'relativeSourcePath = "src"\n'
            'reports = ["text", "json-summary"]\n'
        )

        options = read_cover_options(tmp_path, CoverOptions(cover_config='pyproject.toml'))

        assert options is not None
        assert options.enabled
        assert options.reports == [ReportFormat.TEXT, ReportFormat.JSON_SUMMARY]

    def test_toml_without_section_gives_defaults(self, tmp_path):
        (tmp_path / 'pyproject.toml').write_text('[project]\nname = "demo"\n')

        options = read_cover_options(tmp_path, CoverOptions(cover_config='pyproject.toml'))

        assert options == RunnerOptions()

    def test_malformed_json_raises(self, tmp_path):
        (tmp_path / 'coverconfig.json').write_text('{"enabled": true,')

        with pytest.raises(ConfigurationError, match='Cannot read coverage configuration'):
            read_cover_options(tmp_path, CoverOptions())

    def test_non_object_json_raises(self, tmp_path):
        (tmp_path / 'coverconfig.json').write_text('[true]')

        with pytest.raises(ConfigurationError, match='must be an object'):
            read_cover_options(tmp_path, CoverOptions())
