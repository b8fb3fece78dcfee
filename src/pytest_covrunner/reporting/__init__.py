"""Reporting module for pytest-covrunner coverage results.

This module writes the final coverage map in the Istanbul-compatible
formats (JSON, LCOV, HTML, text, Cobertura).
"""

from pytest_covrunner.reporting.cobertura import CoberturaReporter
from pytest_covrunner.reporting.console import TextReporter, TextSummaryReporter
from pytest_covrunner.reporting.context import ReportContext
from pytest_covrunner.reporting.emitter import ReportEmitter
from pytest_covrunner.reporting.formats import ReportFormat
from pytest_covrunner.reporting.html import HtmlReporter
from pytest_covrunner.reporting.json_reporter import JsonReporter, JsonSummaryReporter
from pytest_covrunner.reporting.lcov import LcovOnlyReporter, LcovReporter


__all__ = [
    'CoberturaReporter',
    'HtmlReporter',
    'JsonReporter',
    'JsonSummaryReporter',
    'LcovOnlyReporter',
    'LcovReporter',
    'ReportContext',
    'ReportEmitter',
    'ReportFormat',
    'TextReporter',
    'TextSummaryReporter',
]
