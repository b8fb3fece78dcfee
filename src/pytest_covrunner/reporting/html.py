"""HTML reporter for coverage results.

Produces a standalone HTML report: an index page with per-file percentages
and one page per file with its source annotated by line hit counts.
"""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from pytest_covrunner.coverage.summary import CoverageSummary, Totals
    from pytest_covrunner.reporting.context import FileNode, ReportContext


LOW_WATERMARK = 50
HIGH_WATERMARK = 80


def coverage_level(totals: Totals) -> str:
    """Classify a metric as ``high``, ``medium`` or ``low`` coverage."""
    if totals.pct >= HIGH_WATERMARK:
        return 'high'
    if totals.pct >= LOW_WATERMARK:
        return 'medium'
    return 'low'


class HtmlReporter:
    """Reporter that produces standalone HTML reports.

    Every page embeds its own CSS so the report directory can be opened
    straight from disk or published as a CI artifact.
    """

    INDEX_NAME = 'index.html'

    def __init__(self, subdir: str | None = None) -> None:
        """Initialize the HTML reporter.

        Args:
            subdir: Directory under the report directory to write into.
                Defaults to the report directory itself.
        """
        self.subdir = subdir

    def render(self, context: ReportContext) -> None:
        """Write the index page and one page per file."""
        context.write_text(self._output_name(self.INDEX_NAME), self.to_html(context))
        for node in context.tree:
            context.write_text(self._output_name(self.page_name(node)), self.file_to_html(context, node))

    def page_name(self, node: FileNode) -> str:
        """Relative name of a file's page within the report."""
        return f'{node.relative_path}.html'

    def to_html(self, context: ReportContext) -> str:
        """Render the index page.

        Args:
            context: The report context.

        Returns:
            Complete HTML document as a string.
        """
        return self._page('All files', context.summary, self._render_files_table(context), '')

    def file_to_html(self, context: ReportContext, node: FileNode) -> str:
        """Render the annotated source page of one file.

        Args:
            context: The report context.
            node: The file to render.

        Returns:
            Complete HTML document as a string.
        """
        depth = node.relative_path.count('/')
        index_link = posixpath.join(*(['..'] * depth), self.INDEX_NAME) if depth else self.INDEX_NAME
        nav = f'<p class="nav"><a href="{index_link}">All files</a> / {self._escape_html(node.relative_path)}</p>'
        return self._page(node.relative_path, node.summary, self._render_source(context, node), nav)

    def _output_name(self, name: str) -> str:
        return posixpath.join(self.subdir, name) if self.subdir else name

    def _page(self, title: str, summary: CoverageSummary, body: str, nav: str) -> str:
        escaped_title = self._escape_html(title)
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Coverage Report for {escaped_title}</title>
    <style>
        {self._get_styles()}
    </style>
</head>
<body>
    <div class="container">
        <h1>{escaped_title}</h1>
        {nav}
        {self._render_summary(summary)}
        {body}
    </div>
</body>
</html>"""

    def _get_styles(self) -> str:
        """Get embedded CSS styles."""
        return """
        * { box-sizing: border-box; }
        body { font-family: Helvetica, Arial, sans-serif; color: #333; background: #fafafa; margin: 0; padding: 16px; }
        .container { max-width: 1100px; margin: 0 auto; background: #fff; padding: 24px; border: 1px solid #ddd; }
        h1 { font-size: 1.4em; margin-top: 0; }
        a { color: #0074d9; text-decoration: none; }
        .nav { margin: 0 0 16px; }
        .summary { display: flex; flex-wrap: wrap; gap: 24px; margin-bottom: 24px; }
        .stat-card { min-width: 140px; }
        .stat-value { font-size: 1.6em; font-weight: bold; }
        .stat-label { color: #777; font-size: 0.9em; }
        table { width: 100%; border-collapse: collapse; margin-top: 16px; }
        th, td { padding: 6px 10px; text-align: left; border-bottom: 1px solid #e5e5e5; }
        th { background: #f0f0f0; }
        .high { color: #3c763d; }
        .medium { color: #b8860b; }
        .low { color: #c21f39; }
        .source { font-family: Menlo, Consolas, monospace; font-size: 0.9em; }
        .source td { padding: 0 8px; border: none; white-space: pre; }
        .line-number, .line-count { color: #999; text-align: right; }
        .line-covered { background: #e6f5d0; }
        .line-uncovered { background: #fce1e5; }
        .no-results { text-align: center; color: #777; padding: 32px; }
        """

    def _render_summary(self, summary: CoverageSummary) -> str:
        """Render the summary section."""
        cards = '\n'.join(
            f"""
            <div class="stat-card">
                <div class="stat-value {coverage_level(totals)}">{totals.pct:g}%</div>
                <div class="stat-label">{label} ({totals.covered}/{totals.total})</div>
            </div>"""
            for label, totals in (
                ('Statements', summary.statements),
                ('Branches', summary.branches),
                ('Functions', summary.functions),
                ('Lines', summary.lines),
            )
        )
        return f"""
        <div class="summary">{cards}
        </div>
        """

    def _render_files_table(self, context: ReportContext) -> str:
        """Render the per-file table of the index page."""
        if not context.tree:
            return '<div class="no-results">No files covered.</div>'

        rows = '\n'.join(self._render_file_row(node) for node in context.tree)
        return f"""
        <table>
            <thead>
                <tr>
                    <th>File</th>
                    <th>Statements</th>
                    <th>Branches</th>
                    <th>Functions</th>
                    <th>Lines</th>
                </tr>
            </thead>
            <tbody>
                {rows}
            </tbody>
        </table>
        """

    def _render_file_row(self, node: FileNode) -> str:
        """Render a single file row."""
        summary = node.summary
        cells = ''.join(
            f'<td class="{coverage_level(totals)}">{totals.pct:g}%</td>'
            for totals in (summary.statements, summary.branches, summary.functions, summary.lines)
        )
        link = self._escape_html(self.page_name(node))
        name = self._escape_html(node.relative_path)
        return f"""
                <tr>
                    <td><a href="{link}">{name}</a></td>
                    {cells}
                </tr>"""

    def _render_source(self, context: ReportContext, node: FileNode) -> str:
        """Render the source listing with per-line hit counts."""
        lines = context.read_source_lines(node.path)
        if lines is None:
            return '<div class="no-results">Source not available.</div>'

        line_coverage = node.file_coverage.get_line_coverage()
        rows = []
        for number, text in enumerate(lines, start=1):
            count = line_coverage.get(number)
            if count is None:
                css_class, count_text = '', ''
            elif count > 0:
                css_class, count_text = 'line-covered', f'{count}x'
            else:
                css_class, count_text = 'line-uncovered', '0x'
            rows.append(
                f'<tr class="{css_class}"><td class="line-number">{number}</td>'
                f'<td class="line-count">{count_text}</td><td>{self._escape_html(text)}</td></tr>'
            )
        body = '\n'.join(rows)
        return f"""
        <table class="source">
            <tbody>
{body}
            </tbody>
        </table>
        """

    def _escape_html(self, text: str) -> str:
        """Escape HTML special characters."""
        return text.replace('&', '&amp;').replace('<', '&lt;').replace('>', '&gt;').replace('"', '&quot;')
