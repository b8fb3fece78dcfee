"""Test-execution engine.

The harness drives tests through the ExecutionEngine protocol so that the
engine can be replaced (for example by a fake in unit tests). PytestEngine
runs the collected files in-process with pytest.main and reports the number
of failed tests.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import pytest

from pytest_covrunner.errors import TestEngineError


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


logger = logging.getLogger(__name__)

FATAL_EXIT_CODES = frozenset({pytest.ExitCode.INTERNAL_ERROR, pytest.ExitCode.USAGE_ERROR})


class ExecutionEngine(Protocol):
    """Protocol for test-execution engines."""

    def add_file(self, path: str) -> None:
        """Queue a test file for the next run."""
        ...

    def after_all(self, hook: Callable[[], None]) -> None:
        """Register a hook that runs once after every test has finished."""
        ...

    def run(self) -> int:
        """Run the queued files and return the number of failed tests."""
        ...


class RunObserver:
    """pytest plugin that counts failures and runs the after-all hooks.

    Attributes:
        failed: Node IDs of tests (or collectors) that failed.
    """

    def __init__(self, hooks: Sequence[Callable[[], None]]) -> None:
        self.failed: set[str] = set()
        self._hooks = list(hooks)
        self._finished = False

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        """Record a failed setup, call or teardown phase."""
        if report.failed:
            self.failed.add(report.nodeid)

    def pytest_collectreport(self, report: pytest.CollectReport) -> None:
        """Record a collection error."""
        if report.failed:
            self.failed.add(report.nodeid)

    def pytest_sessionfinish(self, session: pytest.Session, exitstatus: int) -> None:  # noqa: ARG002
        """Run the after-all hooks once every test has finished."""
        self.run_hooks()

    def run_hooks(self) -> None:
        """Run the after-all hooks, at most once.

        A failing hook is logged and does not stop the remaining hooks or the
        run's failure count from being reported.
        """
        if self._finished:
            return
        self._finished = True
        for hook in self._hooks:
            try:
                hook()
            except Exception:
                logger.exception('After-all hook %r failed', hook)


class PytestEngine:
    """ExecutionEngine running test files in-process with pytest.

    Example:
        >>> engine = PytestEngine(['-q'])
        >>> engine.run()  # no files queued
        0
    """

    def __init__(self, options: Sequence[str] | None = None) -> None:
        """Initialize the engine.

        Args:
            options: Extra command-line arguments passed to pytest.
        """
        self.options = list(options or [])
        self._files: list[str] = []
        self._hooks: list[Callable[[], None]] = []

    @property
    def files(self) -> list[str]:
        """Files queued for the next run."""
        return list(self._files)

    def add_file(self, path: str) -> None:
        """Queue a test file for the next run."""
        self._files.append(path)

    def after_all(self, hook: Callable[[], None]) -> None:
        """Register a hook that runs once after every test has finished."""
        self._hooks.append(hook)

    def run(self) -> int:
        """Run the queued files.

        The queue and the hooks are cleared afterwards, whatever the outcome.

        Returns:
            Number of failed tests.

        Raises:
            TestEngineError: If pytest could not run the suite.
        """
        observer = RunObserver(self._hooks)
        try:
            if not self._files:
                logger.debug('No test files to run')
                observer.run_hooks()
                return 0

            args = [*self.options, *self._files]
            logger.debug('Running pytest with %s', args)
            exit_code = pytest.main(args, plugins=[observer])
            if exit_code in FATAL_EXIT_CODES:
                raise TestEngineError(f'pytest exited with {pytest.ExitCode(exit_code).name}')
            return len(observer.failed)
        finally:
            self._files.clear()
            self._hooks.clear()
