"""LCOV tracefile reporters.

The tracefile layout follows the ``geninfo`` format read by genhtml, Codecov,
Coveralls and most CI dashboards:

    TN:
    SF:/project/src/auth.py
    FN:3,login
    FNDA:1,login
    FNF:1
    FNH:1
    DA:3,1
    LF:1
    LH:1
    BRDA:5,0,0,1
    BRF:1
    BRH:1
    end_of_record
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pytest_covrunner.reporting.html import HtmlReporter


if TYPE_CHECKING:
    from pytest_covrunner.reporting.context import FileNode, ReportContext


class LcovOnlyReporter:
    """Reporter that writes ``lcov.info``."""

    FILE_NAME = 'lcov.info'

    def to_lcov(self, context: ReportContext) -> str:
        """Render every file as one LCOV record."""
        return ''.join(self._render_record(node) for node in context.tree)

    def render(self, context: ReportContext) -> None:
        """Write ``lcov.info`` to the report directory."""
        context.write_text(self.FILE_NAME, self.to_lcov(context))

    def _render_record(self, node: FileNode) -> str:
        file_coverage = node.file_coverage
        lines = ['TN:', f'SF:{node.path}']

        for function in file_coverage.fn_map.values():
            lines.append(f'FN:{function.decl.start.line},{function.name}')
        for function_id, function in file_coverage.fn_map.items():
            lines.append(f'FNDA:{file_coverage.f.get(function_id, 0)},{function.name}')
        lines.append(f'FNF:{node.summary.functions.total}')
        lines.append(f'FNH:{node.summary.functions.covered}')

        for line, count in file_coverage.get_line_coverage().items():
            lines.append(f'DA:{line},{count}')
        lines.append(f'LF:{node.summary.lines.total}')
        lines.append(f'LH:{node.summary.lines.covered}')

        for branch_id, branch in file_coverage.branch_map.items():
            for index, count in enumerate(file_coverage.b.get(branch_id, [])):
                lines.append(f'BRDA:{branch.line},{branch_id},{index},{count}')
        lines.append(f'BRF:{node.summary.branches.total}')
        lines.append(f'BRH:{node.summary.branches.covered}')

        lines.append('end_of_record')
        return '\n'.join(lines) + '\n'


class LcovReporter:
    """Reporter that writes ``lcov.info`` and an HTML report under ``lcov-report/``."""

    HTML_SUBDIR = 'lcov-report'

    def __init__(self) -> None:
        self._tracefile = LcovOnlyReporter()
        self._html = HtmlReporter(subdir=self.HTML_SUBDIR)

    def render(self, context: ReportContext) -> None:
        """Write both the tracefile and the HTML report."""
        self._tracefile.render(context)
        self._html.render(context)
