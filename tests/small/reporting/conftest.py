"""Fixtures shared by the reporter tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from pytest_covrunner.coverage.aggregator import FileCounters
from pytest_covrunner.coverage.mapper import CoverageMap
from pytest_covrunner.instrumentation.transformer import Transformer
from pytest_covrunner.reporting.context import ReportContext


if TYPE_CHECKING:
    from pathlib import Path


AUTH_SOURCE = """def login(user):
    if user:
        return True
    return False
"""

STRINGS_SOURCE = """x = 1
y = '<tag>'
"""


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Source tree with an exercised file and an untouched one."""
    root = tmp_path / 'src'
    (root / 'util').mkdir(parents=True)
    (root / 'auth.py').write_text(AUTH_SOURCE)
    (root / 'util' / 'strings.py').write_text(STRINGS_SOURCE)
    return root


@pytest.fixture
def coverage_map(source_dir: Path, canonicalizer) -> CoverageMap:
    """Coverage where login('alice') ran once and strings.py never ran.

    auth.py: 3 of 4 statements, 1 of 1 functions, 1 of 2 branch paths.
    strings.py: 0 of 2 statements.
    """
    transformer = Transformer('_cov', canonicalizer)
    auth = transformer.transform(AUTH_SOURCE, str(source_dir / 'auth.py'))
    namespace: dict[str, Any] = {'_cov': FileCounters(auth.file_coverage)}
    exec(compile(auth.tree, auth.path, 'exec'), namespace)  # noqa: S102
    namespace['login']('alice')

    strings = transformer.transform(STRINGS_SOURCE, str(source_dir / 'util' / 'strings.py'))

    result = CoverageMap()
    result.add_file_coverage(auth.file_coverage)
    result.add_file_coverage(strings.file_coverage)
    return result


@pytest.fixture
def report_dir(tmp_path: Path) -> Path:
    return tmp_path / 'coverage'


@pytest.fixture
def report_context(report_dir: Path, coverage_map: CoverageMap) -> ReportContext:
    return ReportContext(report_dir, coverage_map)
