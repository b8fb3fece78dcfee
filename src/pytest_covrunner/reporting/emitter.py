"""Report emission.

The ReportEmitter writes one report per requested format into the output
directory. Formats are independent: a failure to write one format is logged
and does not stop the others.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pytest_covrunner.reporting.cobertura import CoberturaReporter
from pytest_covrunner.reporting.console import TextReporter, TextSummaryReporter
from pytest_covrunner.reporting.context import ReportContext
from pytest_covrunner.reporting.formats import ReportFormat
from pytest_covrunner.reporting.html import HtmlReporter
from pytest_covrunner.reporting.json_reporter import JsonReporter, JsonSummaryReporter
from pytest_covrunner.reporting.lcov import LcovOnlyReporter, LcovReporter


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from pytest_covrunner.coverage.mapper import CoverageMap
    from pytest_covrunner.reporting.context import ReportRenderer


logger = logging.getLogger(__name__)


RENDERERS: dict[ReportFormat, Callable[[], ReportRenderer]] = {
    ReportFormat.JSON: JsonReporter,
    ReportFormat.JSON_SUMMARY: JsonSummaryReporter,
    ReportFormat.LCOV: LcovReporter,
    ReportFormat.LCOVONLY: LcovOnlyReporter,
    ReportFormat.HTML: HtmlReporter,
    ReportFormat.TEXT: TextReporter,
    ReportFormat.TEXT_SUMMARY: TextSummaryReporter,
    ReportFormat.COBERTURA: CoberturaReporter,
}


def create_renderer(report_format: ReportFormat) -> ReportRenderer:
    """Create the renderer for a report format."""
    return RENDERERS[report_format]()


class ReportEmitter:
    """Writes coverage reports in the configured formats.

    Attributes:
        report_dir: Directory reports are written to.
        reports: Formats to write, in order.
    """

    def __init__(self, report_dir: Path, reports: Sequence[ReportFormat]) -> None:
        self.report_dir = report_dir
        self.reports = list(reports)

    def emit(self, coverage_map: CoverageMap) -> list[ReportFormat]:
        """Write every configured report.

        Args:
            coverage_map: The final coverage map.

        Returns:
            The formats that were written successfully.
        """
        context = ReportContext(self.report_dir, coverage_map)
        written: list[ReportFormat] = []
        for report_format in self.reports:
            try:
                create_renderer(report_format).render(context)
            except OSError:
                logger.exception('Failed to write %s coverage report to %s', report_format.value, self.report_dir)
                continue
            written.append(report_format)
        if written:
            logger.info(
                'Wrote coverage reports (%s) to %s', ', '.join(f.value for f in written), self.report_dir
            )
        return written
