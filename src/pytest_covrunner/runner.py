"""Coverage lifecycle of one test run.

CoverageRunner sequences the pieces of a run:

1. setup_coverage() builds the MatchIndex, creates the aggregator, evicts
   stale cached modules and installs the import hook
2. the test engine imports and exercises the in-scope modules
3. report_coverage() removes the hook, backfills files that were never
   imported, remaps through source maps and writes the reports

Example:
    >>> from pathlib import Path
    >>> from pytest_covrunner.config import RunnerOptions
    >>> runner = CoverageRunner(RunnerOptions(enabled=True, relative_source_path='src'), Path('tests'))
    >>> runner.teardown_coverage()  # no-op before setup
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
import uuid

from pytest_covrunner.coverage.aggregator import CoverageAggregator
from pytest_covrunner.coverage.backfill import UnvisitedFileBackfiller
from pytest_covrunner.errors import ConfigurationError
from pytest_covrunner.instrumentation.import_hooks import ModuleHookManager
from pytest_covrunner.instrumentation.matcher import SourceMatcher
from pytest_covrunner.instrumentation.transformer import Transformer
from pytest_covrunner.paths import PathCanonicalizer
from pytest_covrunner.reporting.emitter import ReportEmitter
from pytest_covrunner.sourcemaps.store import SourceMapStore


if TYPE_CHECKING:
    from pathlib import Path

    from pytest_covrunner.config import RunnerOptions
    from pytest_covrunner.coverage.mapper import CoverageMap
    from pytest_covrunner.instrumentation.matcher import MatchIndex


logger = logging.getLogger(__name__)

PACKAGE_LOGGER = 'pytest_covrunner'
COVERAGE_VARIABLE_PREFIX = '_cov_'


def new_coverage_variable() -> str:
    """Return a global name no other run in the process uses."""
    return f'{COVERAGE_VARIABLE_PREFIX}{uuid.uuid4().hex}'


class CoverageRunner:
    """Collects and reports coverage around one test run.

    Attributes:
        options: The run's options.
        tests_root: Directory relative paths in the options resolve against.
        coverage_variable: Global name instrumented modules record hits through.
    """

    def __init__(
        self,
        options: RunnerOptions,
        tests_root: Path,
        canonicalizer: PathCanonicalizer | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            options: The run's options.
            tests_root: Directory relative paths in the options resolve against.
            canonicalizer: Path canonicalizer. Defaults to the platform's policy.
        """
        self.options = options
        self.tests_root = tests_root
        self.coverage_variable = new_coverage_variable()
        self._canonicalizer = canonicalizer if canonicalizer is not None else PathCanonicalizer()
        self._transformer = Transformer(self.coverage_variable, self._canonicalizer)
        self._hooks = ModuleHookManager()
        self._aggregator: CoverageAggregator | None = None
        self._match_index: MatchIndex | None = None
        self._previous_level: int | None = None

    @property
    def match_index(self) -> MatchIndex | None:
        """The in-scope files, once set up."""
        return self._match_index

    @property
    def coverage_map(self) -> CoverageMap | None:
        """The live coverage map, once set up."""
        return self._aggregator.coverage_map if self._aggregator is not None else None

    @property
    def report_dir(self) -> Path:
        """Directory reports are written to."""
        return self.tests_root / self.options.relative_coverage_dir

    def setup_coverage(self) -> None:
        """Start collecting coverage.

        Raises:
            ConfigurationError: If no source path is configured. Nothing is
                installed in that case.
        """
        if not self.options.relative_source_path:
            raise ConfigurationError('relativeSourcePath is required when coverage is enabled')

        if self.options.verbose:
            package_logger = logging.getLogger(PACKAGE_LOGGER)
            self._previous_level = package_logger.level
            package_logger.setLevel(logging.DEBUG)

        source_root = self.tests_root / self.options.relative_source_path
        self._aggregator = CoverageAggregator()
        self._match_index = SourceMatcher(source_root, self.options.ignore_patterns, self._canonicalizer).build()
        if not len(self._match_index):
            logger.warning('No source files found under %s', source_root)

        self._hooks.evict_cached_modules(self._match_index)
        self._hooks.install(self._match_index, self._transformer, self._aggregator)
        logger.debug('Coverage hook installed for %d files as %s', len(self._match_index), self.coverage_variable)

    def teardown_coverage(self) -> None:
        """Stop instrumenting imports. Safe to call more than once."""
        if not self._hooks.installed:
            return
        self._hooks.uninstall()
        logger.debug('Coverage hook removed')

    def close(self) -> None:
        """Abandon the run without reporting.

        Removes the hook and restores the package log level raised by
        ``verbose``. Safe to call more than once.
        """
        self.teardown_coverage()
        self._restore_log_level()

    def report_coverage(self) -> None:
        """Finish the run and write the reports.

        Called once after every test has finished. When no instrumented file
        was loaded nothing is written.
        """
        self.teardown_coverage()
        try:
            if self._aggregator is None or self._match_index is None:
                logger.error('Coverage was never set up, no report written')
                return
            if self._aggregator.is_empty():
                logger.error('No coverage information was collected, no report written')
                return

            coverage_map = self._aggregator.coverage_map
            UnvisitedFileBackfiller(self._transformer).backfill(coverage_map, self._match_index)
            final_map = SourceMapStore(self._canonicalizer).transform_coverage(coverage_map)
            ReportEmitter(self.report_dir, self.options.reports).emit(final_map)
        finally:
            self._restore_log_level()

    def _restore_log_level(self) -> None:
        if self._previous_level is not None:
            logging.getLogger(PACKAGE_LOGGER).setLevel(self._previous_level)
            self._previous_level = None
