"""Test runner entry points.

configure() selects the engine and the configuration artifact for later
runs; run() executes a suite, collecting coverage when the artifact enables
it, and reports the outcome through a callback.

Example:
    Run every test under ``tests/`` with the default engine::

        from pathlib import Path
        from pytest_covrunner.harness import run

        def done(error, failures):
            raise SystemExit(1 if error or failures else 0)

        run(Path('tests'), done)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pytest_covrunner.config import CoverOptions, read_cover_options
from pytest_covrunner.engine import PytestEngine
from pytest_covrunner.errors import CoverageRunnerError, DiscoveryError
from pytest_covrunner.runner import CoverageRunner


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from pytest_covrunner.engine import ExecutionEngine


logger = logging.getLogger(__name__)

TEST_FILE_PATTERNS = ('test_*.py', '*_test.py')

_engine: ExecutionEngine | None = None
_cover_options = CoverOptions()


def configure(
    engine_options: Sequence[str] | None = None,
    cover_options: CoverOptions | None = None,
    engine_factory: Callable[[Sequence[str]], ExecutionEngine] = PytestEngine,
) -> None:
    """Replace the process-wide engine and configuration options.

    Args:
        engine_options: Options passed to the engine (pytest arguments).
        cover_options: Locates the configuration artifact.
        engine_factory: Builds the engine from its options.
    """
    global _engine, _cover_options  # noqa: PLW0603
    _engine = engine_factory(list(engine_options or []))
    _cover_options = cover_options if cover_options is not None else CoverOptions()


def _get_engine() -> ExecutionEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = PytestEngine()
    return _engine


def discover_test_files(tests_root: Path) -> list[str]:
    """Find the test files under a directory.

    Args:
        tests_root: Directory to search recursively.

    Returns:
        Sorted paths of files named ``test_*.py`` or ``*_test.py``.

    Raises:
        DiscoveryError: If the directory does not exist or cannot be read.
    """
    if not tests_root.is_dir():
        raise DiscoveryError(f'Tests root {tests_root} is not a directory')
    try:
        found = {path for pattern in TEST_FILE_PATTERNS for path in tests_root.rglob(pattern) if path.is_file()}
    except OSError as exc:
        raise DiscoveryError(f'Cannot search {tests_root} for tests: {exc}') from exc
    return sorted(str(path) for path in found)


def run(tests_root: Path | str, callback: Callable[[CoverageRunnerError | None, int], None]) -> None:
    """Run the suite under a tests root.

    The callback is invoked exactly once, with the error that stopped the run
    (configuration, discovery or engine failure) or with the number of failed
    tests.

    Args:
        tests_root: Directory containing the tests and the configuration artifact.
        callback: Receives ``(error, failure_count)``.
    """
    tests_root = Path(tests_root)
    engine = _get_engine()
    runner: CoverageRunner | None = None

    try:
        options = read_cover_options(tests_root, _cover_options)
        test_files = discover_test_files(tests_root)
        if options is not None and options.enabled:
            runner = CoverageRunner(options, tests_root)
            runner.setup_coverage()
            engine.after_all(runner.report_coverage)
        else:
            logger.debug('Coverage disabled for %s', tests_root)

        for path in test_files:
            engine.add_file(path)
        failures = engine.run()
    except CoverageRunnerError as exc:
        if runner is not None:
            runner.close()
        logger.error('Test run failed: %s', exc)
        callback(exc, 0)
        return

    callback(None, failures)
