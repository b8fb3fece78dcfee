"""Console reporters for coverage results.

Produce human-readable output for terminal display: a per-file table and a
short totals summary.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO


if TYPE_CHECKING:
    from collections.abc import Sequence

    from pytest_covrunner.coverage.summary import CoverageSummary
    from pytest_covrunner.reporting.context import ReportContext


def format_pct(pct: float) -> str:
    """Format a percentage without trailing zeros (``100``, ``85.71``)."""
    return f'{pct:g}'


def format_line_ranges(lines: Sequence[int]) -> str:
    """Collapse sorted line numbers into ranges, e.g. ``1-3,7``."""
    ranges: list[str] = []
    start = previous = None
    for line in lines:
        if start is None:
            start = previous = line
            continue
        if previous is not None and line == previous + 1:
            previous = line
            continue
        ranges.append(f'{start}-{previous}' if start != previous else f'{start}')
        start = previous = line
    if start is not None:
        ranges.append(f'{start}-{previous}' if start != previous else f'{start}')
    return ','.join(ranges)


class TextReporter:
    """Reporter that writes a per-file coverage table to the console.

    Produces output in the following format:

        ----------|---------|----------|---------|---------|-------------------
        File      | % Stmts | % Branch | % Funcs | % Lines | Uncovered Line #s
        ----------|---------|----------|---------|---------|-------------------
        All files |   85.71 |       50 |     100 |   85.71 |
         auth.py  |     100 |      100 |     100 |     100 |
         utils.py |       0 |      100 |       0 |       0 | 1-3
        ----------|---------|----------|---------|---------|-------------------

    Attributes:
        output: The file-like object to write to.
    """

    HEADERS = ('File', '% Stmts', '% Branch', '% Funcs', '% Lines', 'Uncovered Line #s')

    def __init__(self, output: TextIO | None = None) -> None:
        """Initialize the text reporter.

        Args:
            output: File-like object to write to. Defaults to sys.stdout.
        """
        self.output = output or sys.stdout

    def render(self, context: ReportContext) -> None:
        """Write the coverage table to the output."""
        rows = [self._summary_row('All files', context.summary, '')]
        rows.extend(
            self._summary_row(
                f' {node.relative_path}',
                node.summary,
                format_line_ranges(node.file_coverage.get_uncovered_lines()),
            )
            for node in context.tree
        )

        widths = [len(header) for header in self.HEADERS]
        for row in rows:
            widths = [max(width, len(cell)) for width, cell in zip(widths, row, strict=True)]

        separator = '|'.join('-' * (width + (1 if index == 0 else 2)) for index, width in enumerate(widths))
        self._write_line(separator)
        self._write_line(self._format_row(self.HEADERS, widths))
        self._write_line(separator)
        for row in rows:
            self._write_line(self._format_row(row, widths))
        self._write_line(separator)

    def _summary_row(self, name: str, summary: CoverageSummary, uncovered: str) -> tuple[str, ...]:
        return (
            name,
            format_pct(summary.statements.pct),
            format_pct(summary.branches.pct),
            format_pct(summary.functions.pct),
            format_pct(summary.lines.pct),
            uncovered,
        )

    def _format_row(self, row: Sequence[str], widths: Sequence[int]) -> str:
        """Left-align the file and uncovered columns, right-align percentages."""
        cells = []
        for index, (cell, width) in enumerate(zip(row, widths, strict=True)):
            if index == 0:
                cells.append(cell.ljust(width) + ' ')
            elif index == len(row) - 1:
                cells.append(' ' + cell.ljust(width))
            else:
                cells.append(' ' + cell.rjust(width) + ' ')
        return '|'.join(cells).rstrip()

    def _write_line(self, text: str) -> None:
        """Write a line of text followed by newline."""
        self.output.write(text + '\n')


class TextSummaryReporter:
    """Reporter that writes coverage totals to the console.

    Produces output in the following format:

        ============================ Coverage summary ============================
        Statements   : 85.71% ( 6/7 )
        Branches     : 50% ( 1/2 )
        Functions    : 100% ( 2/2 )
        Lines        : 85.71% ( 6/7 )
        ==========================================================================
    """

    BORDER_CHAR = '='
    BORDER_WIDTH = 80

    def __init__(self, output: TextIO | None = None) -> None:
        """Initialize the summary reporter.

        Args:
            output: File-like object to write to. Defaults to sys.stdout.
        """
        self.output = output or sys.stdout

    def render(self, context: ReportContext) -> None:
        """Write the totals to the output."""
        summary = context.summary
        self._write_blank_line()
        self._write_header()
        for label, totals in (
            ('Statements', summary.statements),
            ('Branches', summary.branches),
            ('Functions', summary.functions),
            ('Lines', summary.lines),
        ):
            self._write_line(f'{label:<13}: {format_pct(totals.pct)}% ( {totals.covered}/{totals.total} )')
        self._write_footer()

    def _write_header(self) -> None:
        """Write the report header."""
        title = ' Coverage summary '
        border_len = (self.BORDER_WIDTH - len(title)) // 2
        self._write_line(f'{self.BORDER_CHAR * border_len}{title}{self.BORDER_CHAR * border_len}')

    def _write_footer(self) -> None:
        """Write the report footer."""
        self._write_line(self.BORDER_CHAR * self.BORDER_WIDTH)

    def _write_blank_line(self) -> None:
        """Write a blank line."""
        self.output.write('\n')

    def _write_line(self, text: str) -> None:
        """Write a line of text followed by newline."""
        self.output.write(text + '\n')
