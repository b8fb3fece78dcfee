"""Tests for the configure() and run() entry points with a fake engine."""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING

import pytest

from pytest_covrunner import harness
from pytest_covrunner.config import CoverOptions
from pytest_covrunner.engine import PytestEngine
from pytest_covrunner.errors import ConfigurationError, DiscoveryError, TestEngineError
from pytest_covrunner.harness import configure, discover_test_files, run
from pytest_covrunner.instrumentation.import_hooks import CoverageFinder


if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


class FakeEngine:
    """ExecutionEngine that records files and runs the hooks itself."""

    created: list[FakeEngine] = []

    def __init__(self, options):
        self.options = list(options)
        self.files: list[str] = []
        self.hooks: list[Callable[[], None]] = []
        self.runs = 0
        self.failures = 0
        self.error: Exception | None = None
        FakeEngine.created.append(self)

    def add_file(self, path):
        self.files.append(path)

    def after_all(self, hook):
        self.hooks.append(hook)

    def run(self):
        self.runs += 1
        if self.error is not None:
            raise self.error
        for hook in self.hooks:
            hook()
        return self.failures


@pytest.fixture(autouse=True)
def reset_harness(monkeypatch):
    """Keep configure() from leaking between tests."""
    monkeypatch.setattr(harness, '_engine', None)
    monkeypatch.setattr(harness, '_cover_options', CoverOptions())
    FakeEngine.created.clear()


@pytest.fixture
def engine() -> FakeEngine:
    configure(['-q'], engine_factory=FakeEngine)
    return FakeEngine.created[-1]


@pytest.fixture
def tests_root(tmp_path: Path) -> Path:
    root = tmp_path / 'tests'
    (root / 'unit').mkdir(parents=True)
    (root / 'test_alpha.py').write_text('def test_alpha():\n    pass\n')
    (root / 'unit' / 'beta_test.py').write_text('def test_beta():\n    pass\n')
    (root / 'helpers.py').write_text('')
    source = tmp_path / 'src'
    source.mkdir()
    (source / 'covrunner_harness_target.py').write_text('VALUE = 1\n')
    return root


class RunResult:
    """Captures the callback arguments."""

    def __init__(self) -> None:
        self.calls: list[tuple[Exception | None, int]] = []

    def __call__(self, error, failures):
        self.calls.append((error, failures))


class TestDiscoverTestFiles:
    """Tests for test file discovery."""

    def test_finds_both_naming_conventions(self, tests_root):
        files = discover_test_files(tests_root)

        assert files == sorted([str(tests_root / 'test_alpha.py'), str(tests_root / 'unit' / 'beta_test.py')])

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(DiscoveryError):
            discover_test_files(tmp_path / 'missing')


class TestConfigure:
    """Tests for configure()."""

    def test_builds_engine_from_options(self, engine):
        assert engine.options == ['-q']

    def test_default_engine_is_pytest(self):
        configure()

        assert isinstance(harness._engine, PytestEngine)  # noqa: SLF001


class TestRun:
    """Tests for run()."""

    def test_without_artifact_runs_tests_without_coverage(self, engine, tests_root):
        engine.failures = 2
        result = RunResult()

        run(tests_root, result)

        assert result.calls == [(None, 2)]
        assert len(engine.files) == 2
        assert engine.hooks == []

    def test_enabled_artifact_registers_report_hook(self, engine, tests_root, clean_meta_path):  # noqa: ARG002
        (tests_root / 'coverconfig.json').write_text(
            json.dumps({'enabled': True, 'relativeSourcePath': '../src', 'reports': ['json']})
        )
        result = RunResult()

        run(tests_root, result)

        assert result.calls == [(None, 0)]
        assert len(engine.hooks) == 1
        assert not any(isinstance(finder, CoverageFinder) for finder in sys.meta_path)

    def test_disabled_artifact_skips_coverage(self, engine, tests_root):
        (tests_root / 'coverconfig.json').write_text(json.dumps({'enabled': False, 'relativeSourcePath': '../src'}))
        result = RunResult()

        run(tests_root, result)

        assert result.calls == [(None, 0)]
        assert engine.hooks == []

    def test_configuration_error_is_reported_before_tests(self, engine, tests_root, clean_meta_path):  # noqa: ARG002
        (tests_root / 'coverconfig.json').write_text(json.dumps({'enabled': True}))
        result = RunResult()

        run(tests_root, result)

        [(error, failures)] = result.calls
        assert isinstance(error, ConfigurationError)
        assert failures == 0
        assert engine.runs == 0
        assert not any(isinstance(finder, CoverageFinder) for finder in sys.meta_path)

    def test_discovery_error_is_reported_before_tests(self, engine, tmp_path):
        result = RunResult()

        run(tmp_path / 'missing', result)

        [(error, _)] = result.calls
        assert isinstance(error, DiscoveryError)
        assert engine.runs == 0

    def test_engine_error_removes_hook(self, engine, tests_root, clean_meta_path):  # noqa: ARG002
        (tests_root / 'coverconfig.json').write_text(json.dumps({'enabled': True, 'relativeSourcePath': '../src'}))
        engine.error = TestEngineError('pytest exited with INTERNAL_ERROR')
        result = RunResult()

        run(tests_root, result)

        [(error, _)] = result.calls
        assert error is engine.error
        assert not any(isinstance(finder, CoverageFinder) for finder in sys.meta_path)

    def test_custom_cover_config_location(self, tests_root, clean_meta_path):  # noqa: ARG002
        (tests_root / 'cover.json').write_text(json.dumps({'enabled': True}))
        configure(cover_options=CoverOptions(cover_config='cover.json'), engine_factory=FakeEngine)
        result = RunResult()

        run(str(tests_root), result)

        [(error, _)] = result.calls
        assert isinstance(error, ConfigurationError)

    def test_engine_error_restores_verbose_log_level(
        self, engine, tests_root, clean_meta_path, restore_package_logger  # noqa: ARG002
    ):
        package_logger = logging.getLogger('pytest_covrunner')
        package_logger.setLevel(logging.WARNING)
        (tests_root / 'coverconfig.json').write_text(
            json.dumps({'enabled': True, 'relativeSourcePath': '../src', 'verbose': True})
        )
        engine.error = TestEngineError('pytest exited with USAGE_ERROR')
        result = RunResult()

        run(tests_root, result)

        [(error, _)] = result.calls
        assert error is engine.error
        assert package_logger.level == logging.WARNING
