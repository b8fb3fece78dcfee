"""Configuration loading for pytest-covrunner.

A run reads an optional configuration artifact from the tests root. JSON is
the native format; a ``.toml`` artifact is read from its
[tool.pytest-covrunner] section using the same keys. When the artifact is
absent coverage is not collected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
import tomllib
from typing import TYPE_CHECKING, Any

from pytest_covrunner.errors import ConfigurationError
from pytest_covrunner.reporting.formats import DEFAULT_REPORT_FORMATS, ReportFormat, parse_report_formats


if TYPE_CHECKING:
    from pathlib import Path


logger = logging.getLogger(__name__)

DEFAULT_COVER_CONFIG = 'coverconfig.json'
DEFAULT_COVERAGE_DIR = 'coverage'
TOML_SECTION = 'pytest-covrunner'


@dataclass
class RunnerOptions:
    """Options of one coverage run.

    Attributes:
        enabled: Collect coverage at all.
        relative_coverage_dir: Report directory, relative to the tests root.
        relative_source_path: Source root, relative to the tests root.
            Required when coverage is enabled.
        ignore_patterns: Glob patterns of source files to leave uninstrumented.
        reports: Report formats to write.
        verbose: Enable debug logging for the run.
    """

    enabled: bool = False
    relative_coverage_dir: str = DEFAULT_COVERAGE_DIR
    relative_source_path: str | None = None
    ignore_patterns: list[str] = field(default_factory=list)
    reports: list[ReportFormat] = field(default_factory=lambda: list(DEFAULT_REPORT_FORMATS))
    verbose: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunnerOptions:
        """Build options from the artifact's camelCase keys.

        Args:
            data: The parsed configuration artifact.

        Returns:
            RunnerOptions with defaults for missing keys.

        Raises:
            ConfigurationError: If a value has the wrong type or a report
                format is unknown.
        """
        ignore_patterns = data.get('ignorePatterns', [])
        if not isinstance(ignore_patterns, list) or not all(isinstance(p, str) for p in ignore_patterns):
            raise ConfigurationError('ignorePatterns must be a list of strings')

        relative_source_path = data.get('relativeSourcePath')
        if relative_source_path is not None and not isinstance(relative_source_path, str):
            raise ConfigurationError('relativeSourcePath must be a string')

        relative_coverage_dir = data.get('relativeCoverageDir', DEFAULT_COVERAGE_DIR)
        if not isinstance(relative_coverage_dir, str):
            raise ConfigurationError('relativeCoverageDir must be a string')

        return cls(
            enabled=bool(data.get('enabled', False)),
            relative_coverage_dir=relative_coverage_dir,
            relative_source_path=relative_source_path,
            ignore_patterns=ignore_patterns,
            reports=parse_report_formats(data.get('reports')),
            verbose=bool(data.get('verbose', False)),
        )


@dataclass
class CoverOptions:
    """Options that locate the configuration artifact.

    Attributes:
        cover_config: Artifact path relative to the tests root.
    """

    cover_config: str = DEFAULT_COVER_CONFIG


def _load_artifact(config_path: Path) -> dict[str, Any]:
    """Parse a JSON or TOML configuration artifact."""
    try:
        if config_path.suffix == '.toml':
            with config_path.open('rb') as f:
                data: Any = tomllib.load(f).get('tool', {}).get(TOML_SECTION, {})
        else:
            data = json.loads(config_path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f'Cannot read coverage configuration {config_path}: {exc}') from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f'Coverage configuration {config_path} must be an object')
    return data


def read_cover_options(tests_root: Path, cover_options: CoverOptions) -> RunnerOptions | None:
    """Load the run options from the configuration artifact.

    Args:
        tests_root: Directory the artifact path is relative to.
        cover_options: Locates the artifact.

    Returns:
        RunnerOptions from the artifact, or None if it does not exist.

    Raises:
        ConfigurationError: If the artifact exists but is malformed.
    """
    config_path = tests_root / cover_options.cover_config
    if not config_path.is_file():
        logger.debug('No coverage configuration at %s', config_path)
        return None
    options = RunnerOptions.from_dict(_load_artifact(config_path))
    logger.debug('Loaded coverage configuration from %s: %s', config_path, options)
    return options
