"""Live hit-count state for a coverage run.

Instrumented modules do not write to a process-global variable. Each one is
given a FileCounters recorder, bound in the module's globals under the run's
coverage variable name, which increments counters of one FileCoverage owned
by the run's CoverageAggregator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pytest_covrunner.coverage.mapper import CoverageMap


if TYPE_CHECKING:
    from pytest_covrunner.coverage.file_coverage import FileCoverage


class FileCounters:
    """Counter recorder called from instrumented code.

    The method names are short because a call is inserted before every
    statement of an instrumented module.
    """

    __slots__ = ('_file_coverage',)

    def __init__(self, file_coverage: FileCoverage) -> None:
        self._file_coverage = file_coverage

    def s(self, statement_id: int) -> None:
        """Record one execution of a statement."""
        self._file_coverage.s[statement_id] += 1

    def f(self, function_id: int) -> None:
        """Record one call of a function."""
        self._file_coverage.f[function_id] += 1

    def b(self, branch_id: int, path_index: int) -> None:
        """Record one traversal of a branch path."""
        self._file_coverage.b[branch_id][path_index] += 1


class CoverageAggregator:
    """Owns the live CoverageMap of a run.

    Attributes:
        coverage_map: The map mutated by instrumented code.
    """

    def __init__(self) -> None:
        """Create an aggregator with an empty map."""
        self.coverage_map = CoverageMap()

    def register(self, descriptor: FileCoverage) -> FileCounters:
        """Return a recorder for a file, creating its entry on first touch.

        A file imported twice (for example after being evicted from
        ``sys.modules``) keeps counting into the entry created the first time.

        Args:
            descriptor: The FileCoverage produced by instrumentation.

        Returns:
            A FileCounters bound to the live entry for the file.
        """
        if descriptor.path in self.coverage_map:
            entry = self.coverage_map.file_coverage_for(descriptor.path)
        else:
            entry = self.coverage_map.add_file_coverage(descriptor.copy())
        return FileCounters(entry)

    def is_empty(self) -> bool:
        """Return True if no instrumented file has been loaded."""
        return len(self.coverage_map) == 0
