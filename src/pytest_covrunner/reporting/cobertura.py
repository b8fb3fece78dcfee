"""Cobertura XML reporter.

Writes ``cobertura-coverage.xml`` for CI systems (Jenkins, GitLab, Azure
Pipelines) that display Cobertura results. Files are grouped into one
package per directory.
"""

from __future__ import annotations

import posixpath
import time
from typing import TYPE_CHECKING
import xml.etree.ElementTree as ET

from pytest_covrunner import __version__
from pytest_covrunner.coverage.summary import CoverageSummary


if TYPE_CHECKING:
    from pytest_covrunner.coverage.summary import Totals
    from pytest_covrunner.reporting.context import FileNode, ReportContext


def rate(totals: Totals) -> str:
    """Cobertura rate (0 to 1) of a metric, 1 when there is nothing to cover."""
    if totals.total == 0:
        return '1'
    return f'{totals.covered / totals.total:.4g}'


class CoberturaReporter:
    """Reporter that writes ``cobertura-coverage.xml``."""

    FILE_NAME = 'cobertura-coverage.xml'

    def to_xml(self, context: ReportContext) -> str:
        """Convert the coverage map to a Cobertura XML document."""
        summary = context.summary
        root = ET.Element('coverage', self._rates(summary))
        root.set('lines-covered', str(summary.lines.covered))
        root.set('lines-valid', str(summary.lines.total))
        root.set('branches-covered', str(summary.branches.covered))
        root.set('branches-valid', str(summary.branches.total))
        root.set('complexity', '0')
        root.set('version', __version__)
        root.set('timestamp', str(int(time.time() * 1000)))

        sources = ET.SubElement(root, 'sources')
        ET.SubElement(sources, 'source').text = context.root

        packages = ET.SubElement(root, 'packages')
        for package_name, nodes in self._group_by_package(context.tree).items():
            self._render_package(packages, package_name, nodes)

        ET.indent(root)
        return '<?xml version="1.0" ?>\n' + ET.tostring(root, encoding='unicode') + '\n'

    def render(self, context: ReportContext) -> None:
        """Write ``cobertura-coverage.xml`` to the report directory."""
        context.write_text(self.FILE_NAME, self.to_xml(context))

    def _rates(self, summary: CoverageSummary) -> dict[str, str]:
        return {'line-rate': rate(summary.lines), 'branch-rate': rate(summary.branches)}

    def _group_by_package(self, nodes: list[FileNode]) -> dict[str, list[FileNode]]:
        """Group files by directory, ``main`` for files at the root."""
        packages: dict[str, list[FileNode]] = {}
        for node in nodes:
            directory = posixpath.dirname(node.relative_path)
            name = directory.replace('/', '.') if directory else 'main'
            packages.setdefault(name, []).append(node)
        return packages

    def _render_package(self, parent: ET.Element, name: str, nodes: list[FileNode]) -> None:
        summary = CoverageSummary.combine(node.summary for node in nodes)
        package = ET.SubElement(parent, 'package', {'name': name, **self._rates(summary), 'complexity': '0'})
        classes = ET.SubElement(package, 'classes')
        for node in nodes:
            self._render_class(classes, node)

    def _render_class(self, parent: ET.Element, node: FileNode) -> None:
        file_coverage = node.file_coverage
        attributes = {
            'name': posixpath.basename(node.relative_path),
            'filename': node.relative_path,
            **self._rates(node.summary),
            'complexity': '0',
        }
        cls = ET.SubElement(parent, 'class', attributes)

        methods = ET.SubElement(cls, 'methods')
        for function_id, function in file_coverage.fn_map.items():
            hits = file_coverage.f.get(function_id, 0)
            method = ET.SubElement(
                methods,
                'method',
                {
                    'name': function.name,
                    'hits': str(hits),
                    'signature': '',
                    'line-rate': '1' if hits > 0 else '0',
                    'branch-rate': '1',
                },
            )
            method_lines = ET.SubElement(method, 'lines')
            ET.SubElement(method_lines, 'line', {'number': str(function.line), 'hits': str(hits)})

        branches_by_line: dict[int, list[int]] = {}
        for branch_id, branch in file_coverage.branch_map.items():
            branches_by_line.setdefault(branch.line, []).extend(file_coverage.b.get(branch_id, []))

        lines = ET.SubElement(cls, 'lines')
        for number, hits in file_coverage.get_line_coverage().items():
            line = ET.SubElement(lines, 'line', {'number': str(number), 'hits': str(hits), 'branch': 'false'})
            counts = branches_by_line.get(number)
            if counts:
                covered = sum(1 for count in counts if count > 0)
                line.set('branch', 'true')
                line.set('condition-coverage', f'{covered * 100 // len(counts)}% ({covered}/{len(counts)})')
