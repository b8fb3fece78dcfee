"""Remapping of coverage onto original sources.

The SourceMapStore takes a CoverageMap keyed by the files that actually ran
and returns one keyed by the files that were authored. Files carrying an
``input_source_map`` have every statement, function and branch location
translated through it; everything else passes through unchanged.
"""

from __future__ import annotations

import logging
import os

from pytest_covrunner.coverage.file_coverage import BranchMapping, FileCoverage, FunctionMapping, Range
from pytest_covrunner.coverage.mapper import CoverageMap
from pytest_covrunner.paths import PathCanonicalizer
from pytest_covrunner.sourcemaps.source_map import SourceMap


logger = logging.getLogger(__name__)


class SourceMapStore:
    """Translates coverage through source maps.

    Example:
        >>> store = SourceMapStore()
        >>> len(store.transform_coverage(CoverageMap()))
        0
    """

    def __init__(self, canonicalizer: PathCanonicalizer | None = None) -> None:
        """Initialize the store.

        Args:
            canonicalizer: Canonicalises resolved original paths.
        """
        self._canonicalizer = canonicalizer if canonicalizer is not None else PathCanonicalizer()

    def transform_coverage(self, coverage_map: CoverageMap) -> CoverageMap:
        """Return a new map keyed by original source files.

        Args:
            coverage_map: Coverage keyed by generated files.

        Returns:
            Coverage keyed by original files. Entries whose map cannot be
            parsed pass through unchanged.
        """
        result = CoverageMap()
        for path in coverage_map:
            file_coverage = coverage_map.file_coverage_for(path)
            if file_coverage.input_source_map is None:
                result.add_file_coverage(file_coverage.copy())
                continue
            try:
                source_map = SourceMap.from_dict(file_coverage.input_source_map)
            except (ValueError, TypeError, KeyError) as exc:
                logger.warning('Cannot use source map of %s, keeping generated positions: %s', path, exc)
                result.add_file_coverage(file_coverage.copy())
                continue
            for remapped in self._remap_file(file_coverage, source_map).values():
                result.add_file_coverage(remapped)
        return result

    def _resolve_source(self, generated_path: str, source: str) -> str:
        """Resolve a map's source entry relative to the generated file."""
        return self._canonicalizer.canonicalize(os.path.join(os.path.dirname(generated_path), source))

    def _map_range(self, source_map: SourceMap, generated_path: str, location: Range) -> tuple[str, Range] | None:
        """Map a generated range into one original file.

        Returns:
            (original path, original range), or None if either end cannot be
            mapped or the ends land in different sources.
        """
        start = source_map.original_position_for(location.start.line, location.start.column)
        end = source_map.original_position_for(location.end.line, location.end.column)
        if start is None or end is None or start.source != end.source:
            return None
        return (
            self._resolve_source(generated_path, start.source),
            Range.from_coords(start.line, start.column, end.line, end.column),
        )

    def _remap_file(self, file_coverage: FileCoverage, source_map: SourceMap) -> dict[str, FileCoverage]:
        """Split one generated file's coverage into per-original-source coverage."""
        remapped: dict[str, FileCoverage] = {}

        def target(path: str) -> FileCoverage:
            if path not in remapped:
                remapped[path] = FileCoverage(path=path)
            return remapped[path]

        for statement_id, location in file_coverage.statement_map.items():
            mapped = self._map_range(source_map, file_coverage.path, location)
            if mapped is not None:
                path, original = mapped
                target(path).add_statement(original, file_coverage.s.get(statement_id, 0))

        for function_id, function in file_coverage.fn_map.items():
            mapped = self._map_range(source_map, file_coverage.path, function.loc)
            if mapped is None:
                continue
            path, loc = mapped
            decl = self._map_range(source_map, file_coverage.path, function.decl)
            decl_range = decl[1] if decl is not None and decl[0] == path else loc
            target(path).add_function(
                FunctionMapping(name=function.name, decl=decl_range, loc=loc, line=loc.start.line),
                file_coverage.f.get(function_id, 0),
            )

        for branch_id, branch in file_coverage.branch_map.items():
            mapped = self._map_range(source_map, file_coverage.path, branch.loc)
            if mapped is None:
                continue
            path, loc = mapped
            locations: list[Range] = []
            for location in branch.locations:
                mapped_location = self._map_range(source_map, file_coverage.path, location)
                if mapped_location is None or mapped_location[0] != path:
                    break
                locations.append(mapped_location[1])
            else:
                target(path).add_branch(
                    BranchMapping(type=branch.type, loc=loc, locations=tuple(locations), line=loc.start.line),
                    list(file_coverage.b.get(branch_id, [0] * len(branch.locations))),
                )

        if not remapped:
            logger.debug('No positions of %s could be mapped', file_coverage.path)
        return remapped
