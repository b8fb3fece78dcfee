"""Shared pytest configuration and fixtures for pytest-covrunner tests."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import pytest

from pytest_covrunner.coverage.file_coverage import BranchMapping, FileCoverage, FunctionMapping, Range
from pytest_covrunner.paths import PathCanonicalizer


if TYPE_CHECKING:
    from collections.abc import Callable, Generator


# Register markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line('markers', 'small: Fast, isolated unit tests (< 100ms)')
    config.addinivalue_line('markers', 'medium: Integration tests with real resources (< 10s)')
    config.addinivalue_line('markers', 'large: End-to-end system tests (< 60s)')


@pytest.fixture
def canonicalizer() -> PathCanonicalizer:
    """Case-sensitive canonicalizer, independent of the host platform."""
    return PathCanonicalizer(case_insensitive=False)


@pytest.fixture
def clean_meta_path() -> Generator[None, None, None]:
    """Ensure sys.meta_path is cleaned up after tests."""
    original_meta_path = sys.meta_path.copy()
    yield
    sys.meta_path[:] = original_meta_path


@pytest.fixture
def clean_modules() -> Generator[None, None, None]:
    """Remove modules imported by a test from sys.modules."""
    original_modules = set(sys.modules)
    yield
    for key in list(sys.modules):
        if key not in original_modules:
            del sys.modules[key]


@pytest.fixture
def restore_package_logger() -> Generator[None, None, None]:
    """Restore the package logger level changed by verbose runs."""
    package_logger = logging.getLogger('pytest_covrunner')
    level = package_logger.level
    yield
    package_logger.setLevel(level)


@pytest.fixture
def make_file_coverage() -> Callable[..., FileCoverage]:
    """Factory fixture for a small FileCoverage.

    The file has two statements on lines 1 and 2, one function declared on
    line 1 and one ``if`` branch on line 2.
    """

    def _make_file_coverage(
        path: str = '/project/src/app.py',
        statement_hits: tuple[int, int] = (1, 0),
        function_hits: int = 1,
        branch_hits: tuple[int, int] = (1, 0),
    ) -> FileCoverage:
        file_coverage = FileCoverage(path=path)
        file_coverage.add_statement(Range.from_coords(1, 0, 1, 20), statement_hits[0])
        file_coverage.add_statement(Range.from_coords(2, 4, 2, 10), statement_hits[1])
        file_coverage.add_function(
            FunctionMapping(
                name='handler',
                decl=Range.from_coords(1, 0, 1, 11),
                loc=Range.from_coords(1, 0, 3, 10),
                line=1,
            ),
            function_hits,
        )
        file_coverage.add_branch(
            BranchMapping(
                type='if',
                loc=Range.from_coords(2, 4, 3, 10),
                locations=(Range.from_coords(3, 8, 3, 10), Range.from_coords(2, 4, 3, 10)),
                line=2,
            ),
            list(branch_hits),
        )
        return file_coverage

    return _make_file_coverage
