"""End-to-end runs: harness, nested pytest session, import hook and reports."""

from __future__ import annotations

import json
import os
import sys
from typing import TYPE_CHECKING

import pytest

from pytest_covrunner import harness
from pytest_covrunner.config import CoverOptions
from pytest_covrunner.instrumentation.import_hooks import CoverageFinder


if TYPE_CHECKING:
    from pathlib import Path


GRADE_SOURCE = """\
def grade(score):
    if score >= 50:
        return 'pass'
    return 'fail'
"""

VENDORED_SOURCE = """\
def helper():
    return 42
"""

UNUSED_SOURCE = """\
def never_called(value):
    return value or 0


CONSTANT = 3
"""

PASSING_TEST = """\
from covrunner_e2e_grades import grade


def test_grade_passes():
    assert grade(70) == 'pass'
"""

VENDORED_TEST = """\
from vendor.covrunner_e2e_vendored import helper


def test_helper():
    assert helper() == 42
"""

FAILING_TESTS = """\
def test_ok():
    assert True


def test_broken():
    assert 1 == 2


def test_also_broken():
    assert [] == [1]
"""


@pytest.fixture
def project(tmp_path: Path, monkeypatch, clean_modules, clean_meta_path) -> Path:  # noqa: ARG001
    """A source tree and tests root; returns the tests root."""
    source = tmp_path / 'src'
    (source / 'vendor').mkdir(parents=True)
    (source / 'covrunner_e2e_grades.py').write_text(GRADE_SOURCE)
    (source / 'vendor' / '__init__.py').write_text('')
    (source / 'vendor' / 'covrunner_e2e_vendored.py').write_text(VENDORED_SOURCE)
    (source / 'covrunner_e2e_unused.py').write_text(UNUSED_SOURCE)
    monkeypatch.syspath_prepend(str(source))

    tests_root = tmp_path / 'suite'
    tests_root.mkdir()
    monkeypatch.setattr(harness, '_engine', None)
    monkeypatch.setattr(harness, '_cover_options', CoverOptions())
    harness.configure(['-q', '-p', 'no:cacheprovider', '--rootdir', str(tmp_path)])
    return tests_root


def write_config(tests_root: Path, **overrides) -> None:
    config = {
        'enabled': True,
        'relativeSourcePath': '../src',
        'ignorePatterns': ['vendor/*'],
        'reports': ['json', 'lcovonly'],
    }
    config.update(overrides)
    (tests_root / 'coverconfig.json').write_text(json.dumps(config))


def run_suite(tests_root: Path) -> tuple[Exception | None, int]:
    results: list[tuple[Exception | None, int]] = []
    harness.run(tests_root, lambda error, failures: results.append((error, failures)))
    assert len(results) == 1
    return results[0]


def canonical(path: Path) -> str:
    return os.path.normpath(os.path.abspath(path))


def load_final(tests_root: Path) -> dict:
    return json.loads((tests_root / 'coverage' / 'coverage-final.json').read_text())


class TestCoverageRun:
    """Full runs with coverage enabled."""

    def test_exercised_file_is_counted_and_ignored_file_is_absent(self, project):
        (project / 'test_grades.py').write_text(PASSING_TEST)
        (project / 'test_vendored.py').write_text(VENDORED_TEST)
        write_config(project)

        error, failures = run_suite(project)

        assert error is None
        assert failures == 0
        final = load_final(project)
        grades = final[canonical(project.parent / 'src' / 'covrunner_e2e_grades.py')]
        assert grades['f'] == {'0': 1}
        assert grades['b'] == {'0': [1, 0]}
        assert 0 in grades['s'].values()
        assert any(hits > 0 for hits in grades['s'].values())
        assert not any('covrunner_e2e_vendored' in path for path in final)

    def test_unimported_file_is_reported_with_zero_hits(self, project):
        (project / 'test_grades.py').write_text(PASSING_TEST)
        write_config(project)

        run_suite(project)

        unused = load_final(project)[canonical(project.parent / 'src' / 'covrunner_e2e_unused.py')]
        assert unused['s']
        assert set(unused['s'].values()) == {0}
        assert unused['f'] == {'0': 0}
        assert unused['b'] == {'0': [0, 0]}

    def test_lcov_report_lists_source_files(self, project):
        (project / 'test_grades.py').write_text(PASSING_TEST)
        write_config(project)

        run_suite(project)

        lcov = (project / 'coverage' / 'lcov.info').read_text()
        assert f'SF:{canonical(project.parent / "src" / "covrunner_e2e_grades.py")}' in lcov
        assert 'FNDA:1,grade' in lcov
        assert lcov.count('end_of_record') == 2

    def test_hook_is_removed_after_the_run(self, project):
        (project / 'test_grades.py').write_text(PASSING_TEST)
        write_config(project)

        run_suite(project)

        assert not any(isinstance(finder, CoverageFinder) for finder in sys.meta_path)

    def test_malformed_source_map_keeps_reports_and_failure_count(self, project):
        source = project.parent / 'src'
        (source / 'covrunner_e2e_grades.py.map').write_text(
            json.dumps({'version': 3, 'sources': ['grades.tmpl'], 'mappings': None})
        )
        (project / 'test_grades.py').write_text(PASSING_TEST)
        (project / 'test_broken.py').write_text('def test_broken():\n    assert 1 == 2\n')
        write_config(project)

        error, failures = run_suite(project)

        assert (error, failures) == (None, 1)
        final = load_final(project)
        assert canonical(source / 'covrunner_e2e_grades.py') in final

    def test_no_imports_means_no_reports(self, project):
        (project / 'test_nothing.py').write_text('def test_nothing():\n    pass\n')
        write_config(project)

        error, failures = run_suite(project)

        assert (error, failures) == (None, 0)
        assert not (project / 'coverage').exists()


class TestRunWithoutCoverage:
    """Full runs with coverage absent or misconfigured."""

    def test_failures_are_counted_without_reports(self, project):
        (project / 'test_failing.py').write_text(FAILING_TESTS)

        error, failures = run_suite(project)

        assert error is None
        assert failures == 2
        assert not (project / 'coverage').exists()

    def test_missing_source_path_fails_before_tests(self, project):
        (project / 'test_failing.py').write_text(FAILING_TESTS)
        (project / 'coverconfig.json').write_text(json.dumps({'enabled': True}))

        error, failures = run_suite(project)

        assert error is not None
        assert failures == 0
        assert not any(isinstance(finder, CoverageFinder) for finder in sys.meta_path)
