"""Report formats.

The set of report formats is closed: every identifier a configuration may
name is a member of ReportFormat, and unknown identifiers are rejected when
the configuration is loaded rather than when the report is written.
"""

from __future__ import annotations

from enum import Enum

from pytest_covrunner.errors import ConfigurationError


class ReportFormat(Enum):
    """Supported coverage report formats.

    Attributes:
        JSON: Full coverage data, ``coverage-final.json``.
        JSON_SUMMARY: Per-file totals, ``coverage-summary.json``.
        LCOV: ``lcov.info`` plus an HTML report under ``lcov-report/``.
        LCOVONLY: ``lcov.info`` only.
        HTML: Browsable HTML report.
        TEXT: Per-file table on the console.
        TEXT_SUMMARY: Totals on the console.
        COBERTURA: ``cobertura-coverage.xml``.
    """

    JSON = 'json'
    JSON_SUMMARY = 'json-summary'
    LCOV = 'lcov'
    LCOVONLY = 'lcovonly'
    HTML = 'html'
    TEXT = 'text'
    TEXT_SUMMARY = 'text-summary'
    COBERTURA = 'cobertura'


DEFAULT_REPORT_FORMATS: tuple[ReportFormat, ...] = (ReportFormat.LCOVONLY,)


def parse_report_formats(value: object) -> list[ReportFormat]:
    """Validate the ``reports`` configuration value.

    Args:
        value: The raw value from the configuration artifact.

    Returns:
        The requested formats, or the default formats when ``value`` is
        missing or is not a list.

    Raises:
        ConfigurationError: If the list names an unknown format.
    """
    if not isinstance(value, list):
        return list(DEFAULT_REPORT_FORMATS)

    formats: list[ReportFormat] = []
    for item in value:
        try:
            formats.append(ReportFormat(item))
        except ValueError:
            available = ', '.join(f.value for f in ReportFormat)
            raise ConfigurationError(f"Unknown report format: {item!r} (available: {available})") from None
    return formats
