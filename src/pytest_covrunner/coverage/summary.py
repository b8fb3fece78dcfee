"""Coverage summary calculation.

A summary condenses a FileCoverage (or a whole CoverageMap) into covered and
total counts for lines, statements, functions and branches:
  pct = covered / total * 100

The percentage is floored to two decimals and is 100 for empty totals, so a
file with nothing to cover never drags an aggregate down.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Iterable

    from pytest_covrunner.coverage.file_coverage import FileCoverage


def percentage(covered: int, total: int) -> float:
    """Return covered/total as a percentage floored to two decimals."""
    if total == 0:
        return 100.0
    return math.floor(covered / total * 10000) / 100


@dataclass(frozen=True)
class Totals:
    """Covered and total counts of one metric.

    Attributes:
        total: Number of coverable items.
        covered: Number of items hit at least once.
        skipped: Number of items excluded from the count.
    """

    total: int
    covered: int
    skipped: int = 0

    @property
    def pct(self) -> float:
        """Coverage percentage (0.0 to 100.0)."""
        return percentage(self.covered, self.total)

    def __add__(self, other: Totals) -> Totals:
        return Totals(
            total=self.total + other.total,
            covered=self.covered + other.covered,
            skipped=self.skipped + other.skipped,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the Istanbul summary representation."""
        return {'total': self.total, 'covered': self.covered, 'skipped': self.skipped, 'pct': self.pct}


EMPTY_TOTALS = Totals(total=0, covered=0)


@dataclass(frozen=True)
class CoverageSummary:
    """Aggregated coverage counts.

    Attributes:
        lines: Line coverage derived from statements.
        statements: Statement coverage.
        functions: Function coverage.
        branches: Branch path coverage.
    """

    lines: Totals = EMPTY_TOTALS
    statements: Totals = EMPTY_TOTALS
    functions: Totals = EMPTY_TOTALS
    branches: Totals = EMPTY_TOTALS

    @classmethod
    def from_file_coverage(cls, file_coverage: FileCoverage) -> CoverageSummary:
        """Summarise one file.

        Args:
            file_coverage: The file to summarise.

        Returns:
            CoverageSummary with counts for each metric.
        """
        line_counts = file_coverage.get_line_coverage().values()
        branch_counts = [count for counts in file_coverage.b.values() for count in counts]
        return cls(
            lines=Totals(total=len(line_counts), covered=sum(1 for c in line_counts if c > 0)),
            statements=Totals(total=len(file_coverage.s), covered=sum(1 for c in file_coverage.s.values() if c > 0)),
            functions=Totals(total=len(file_coverage.f), covered=sum(1 for c in file_coverage.f.values() if c > 0)),
            branches=Totals(total=len(branch_counts), covered=sum(1 for c in branch_counts if c > 0)),
        )

    @classmethod
    def combine(cls, summaries: Iterable[CoverageSummary]) -> CoverageSummary:
        """Add several summaries together."""
        result = cls()
        for summary in summaries:
            result = cls(
                lines=result.lines + summary.lines,
                statements=result.statements + summary.statements,
                functions=result.functions + summary.functions,
                branches=result.branches + summary.branches,
            )
        return result

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Return the Istanbul ``coverage-summary.json`` entry."""
        return {
            'lines': self.lines.to_dict(),
            'statements': self.statements.to_dict(),
            'functions': self.functions.to_dict(),
            'branches': self.branches.to_dict(),
        }
