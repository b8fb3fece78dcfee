"""Shared context for report renderers.

One ReportContext is built per emission. It holds the output directory and
the final CoverageMap, and computes the flat file tree with per-file
summaries once for all renderers.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from pytest_covrunner.coverage.summary import CoverageSummary


if TYPE_CHECKING:
    from pytest_covrunner.coverage.file_coverage import FileCoverage
    from pytest_covrunner.coverage.mapper import CoverageMap


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileNode:
    """One file in the report tree.

    Attributes:
        path: Path of the file as stored in the coverage map.
        relative_path: Path relative to the common root of all files, using ``/``.
        file_coverage: The file's coverage data.
        summary: The file's coverage summary.
    """

    path: str
    relative_path: str
    file_coverage: FileCoverage
    summary: CoverageSummary


class ReportRenderer(Protocol):
    """Protocol for all report renderers."""

    def render(self, context: ReportContext) -> None:
        """Write this renderer's report for the given context."""
        ...


class ReportContext:
    """Aggregation context shared by every renderer of one emission.

    Attributes:
        report_dir: Directory reports are written to.
        coverage_map: The final coverage map.
    """

    def __init__(self, report_dir: Path, coverage_map: CoverageMap) -> None:
        self.report_dir = report_dir
        self.coverage_map = coverage_map

    @cached_property
    def root(self) -> str:
        """Common directory of every file in the map."""
        directories = [os.path.dirname(path) for path in self.coverage_map.files()]
        if not directories:
            return ''
        return os.path.commonpath(directories)

    @cached_property
    def tree(self) -> list[FileNode]:
        """Flat list of files, sorted by path."""
        nodes: list[FileNode] = []
        for path in self.coverage_map.files():
            file_coverage = self.coverage_map.file_coverage_for(path)
            relative = os.path.relpath(path, self.root) if self.root else path
            nodes.append(
                FileNode(
                    path=path,
                    relative_path=Path(relative).as_posix(),
                    file_coverage=file_coverage,
                    summary=CoverageSummary.from_file_coverage(file_coverage),
                )
            )
        return nodes

    @cached_property
    def summary(self) -> CoverageSummary:
        """Totals over every file."""
        return CoverageSummary.combine(node.summary for node in self.tree)

    def write_text(self, relative_name: str, content: str) -> Path:
        """Write a report file under the report directory.

        Args:
            relative_name: File name relative to the report directory.
            content: Text to write.

        Returns:
            Path of the written file.
        """
        output_path = self.report_dir / relative_name
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding='utf-8')
        logger.debug('Wrote %s', output_path)
        return output_path

    def read_source_lines(self, path: str) -> list[str] | None:
        """Read a covered file's source for annotation.

        Returns:
            The file's lines, or None if it cannot be read.
        """
        try:
            return Path(path).read_text(encoding='utf-8').splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug('Cannot read source of %s: %s', path, exc)
            return None
