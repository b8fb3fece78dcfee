"""Exception hierarchy for pytest-covrunner.

Configuration and discovery failures stop a run before any test executes and
are handed to the run callback. Backfill failures are recoverable and only
ever logged.
"""

from __future__ import annotations


class CoverageRunnerError(Exception):
    """Base class for all pytest-covrunner errors."""


class ConfigurationError(CoverageRunnerError):
    """A required option is missing or the configuration artifact is invalid."""


class DiscoveryError(CoverageRunnerError):
    """Test files could not be located under the tests root."""


class BackfillFileError(CoverageRunnerError):
    """An unvisited source file could not be read or instrumented.

    Attributes:
        path: The source file that failed.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f'Could not backfill coverage for {path}: {reason}')
        self.path = path


class TestEngineError(CoverageRunnerError):
    """The test-execution engine could not run the suite."""

    __test__ = False
