"""JSON reporters for coverage results.

Produces machine-readable JSON output for CI integration and for tools that
consume the Istanbul coverage formats.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from pytest_covrunner.reporting.context import ReportContext


class JsonReporter:
    """Reporter that writes the full coverage map.

    JSON structure (one entry per file, keyed by path):
        {
            "/project/src/auth.py": {
                "path": "/project/src/auth.py",
                "statementMap": {"0": {"start": {"line": 1, "column": 0}, "end": {...}}},
                "fnMap": {"0": {"name": "login", "decl": {...}, "loc": {...}, "line": 3}},
                "branchMap": {"0": {"type": "if", "loc": {...}, "locations": [...], "line": 5}},
                "s": {"0": 1},
                "f": {"0": 1},
                "b": {"0": [1, 0]}
            }
        }
    """

    FILE_NAME = 'coverage-final.json'

    def to_json(self, context: ReportContext) -> str:
        """Convert the coverage map to a JSON string."""
        return json.dumps(context.coverage_map.to_dict())

    def render(self, context: ReportContext) -> None:
        """Write ``coverage-final.json`` to the report directory."""
        context.write_text(self.FILE_NAME, self.to_json(context))


class JsonSummaryReporter:
    """Reporter that writes per-file and total coverage percentages.

    JSON structure:
        {
            "total": {"lines": {...}, "statements": {...}, "functions": {...}, "branches": {...}},
            "/project/src/auth.py": {"lines": {"total": 10, "covered": 8, "skipped": 0, "pct": 80.0}, ...}
        }
    """

    FILE_NAME = 'coverage-summary.json'

    def to_json(self, context: ReportContext) -> str:
        """Convert the summaries to a pretty-printed JSON string."""
        return json.dumps(self._build_report_data(context), indent=2)

    def render(self, context: ReportContext) -> None:
        """Write ``coverage-summary.json`` to the report directory."""
        context.write_text(self.FILE_NAME, self.to_json(context))

    def _build_report_data(self, context: ReportContext) -> dict[str, Any]:
        """Build the complete summary structure."""
        data: dict[str, Any] = {'total': context.summary.to_dict()}
        for node in context.tree:
            data[node.path] = node.summary.to_dict()
        return data
