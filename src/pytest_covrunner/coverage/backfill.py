"""Zero-coverage entries for files that were never imported.

A source file no test imported has no entry in the live CoverageMap. Without
one it would silently drop out of the report, so after the suite finishes the
backfiller instruments each such file statically and records every counter as
zero.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pytest_covrunner.errors import BackfillFileError
from pytest_covrunner.instrumentation.import_hooks import FileSourceProvider


if TYPE_CHECKING:
    from pytest_covrunner.coverage.file_coverage import FileCoverage
    from pytest_covrunner.coverage.mapper import CoverageMap
    from pytest_covrunner.instrumentation.import_hooks import SourceProvider
    from pytest_covrunner.instrumentation.matcher import MatchIndex
    from pytest_covrunner.instrumentation.transformer import Transformer


logger = logging.getLogger(__name__)


class UnvisitedFileBackfiller:
    """Adds all-zero coverage for in-scope files missing from a CoverageMap."""

    def __init__(self, transformer: Transformer, provider: SourceProvider | None = None) -> None:
        """Initialize the backfiller.

        Args:
            transformer: The same transformer the import hook used.
            provider: Supplies raw source text. Defaults to reading from disk.
        """
        self._transformer = transformer
        self._provider = provider if provider is not None else FileSourceProvider()

    def _zero_coverage(self, path: str) -> FileCoverage:
        """Instrument one file and zero its counters.

        Statically instrumented files can carry counters that are already
        non-zero (``__future__`` imports are recorded as executed), which is
        only true once the module has actually run.

        Raises:
            BackfillFileError: If the file cannot be read or parsed.
        """
        try:
            source = self._provider.get_source(path)
            instrumented = self._transformer.transform(source, path)
        except (OSError, UnicodeDecodeError, SyntaxError, ValueError) as exc:
            raise BackfillFileError(path, str(exc)) from exc
        file_coverage = instrumented.file_coverage
        file_coverage.reset_hits()
        return file_coverage

    def backfill(self, coverage_map: CoverageMap, match_index: MatchIndex) -> list[str]:
        """Insert zero-coverage entries for every unvisited in-scope file.

        A file that fails is logged and skipped; the others are still filled.

        Args:
            coverage_map: The live map, modified in place.
            match_index: The in-scope files.

        Returns:
            Paths that were backfilled.
        """
        backfilled: list[str] = []
        for path in match_index.files:
            if path in coverage_map:
                continue
            try:
                file_coverage = self._zero_coverage(path)
            except BackfillFileError as exc:
                logger.warning('%s', exc)
                continue
            coverage_map.add_file_coverage(file_coverage)
            backfilled.append(path)
        logger.debug('Backfilled %d unvisited files', len(backfilled))
        return backfilled
