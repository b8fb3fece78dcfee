"""CoverageMap for holding coverage of many files.

The CoverageMap is the core data structure of a run. It is built
incrementally while instrumented code executes, completed by the backfill
pass, then remapped onto original sources before reporting.

Example:
    >>> coverage_map = CoverageMap()
    >>> len(coverage_map)
    0
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pytest_covrunner.coverage.file_coverage import FileCoverage


if TYPE_CHECKING:
    from collections.abc import Iterator


class CoverageMap:
    """Maps file paths to their FileCoverage.

    Attributes:
        _data: Internal dict mapping paths to FileCoverage objects.
    """

    def __init__(self, files: dict[str, FileCoverage] | None = None) -> None:
        """Create a coverage map, optionally seeded with existing entries."""
        self._data: dict[str, FileCoverage] = dict(files) if files else {}

    def __len__(self) -> int:
        """Return the number of files in the map."""
        return len(self._data)

    def __contains__(self, path: object) -> bool:
        """Check if a file has an entry in the map."""
        return path in self._data

    def __iter__(self) -> Iterator[str]:
        """Iterate over file paths in insertion order."""
        return iter(self._data)

    def files(self) -> list[str]:
        """Return the file paths, sorted."""
        return sorted(self._data)

    def file_coverage_for(self, path: str) -> FileCoverage:
        """Get the coverage of one file.

        Args:
            path: Path of the file.

        Returns:
            The FileCoverage stored for that path.

        Raises:
            KeyError: If the file has no entry.
        """
        if path not in self._data:
            raise KeyError(f'No file coverage available for: {path}')
        return self._data[path]

    def add_file_coverage(self, file_coverage: FileCoverage) -> FileCoverage:
        """Add a file's coverage, merging with an existing entry for the same path.

        Args:
            file_coverage: The coverage to add.

        Returns:
            The entry now stored for that path.
        """
        existing = self._data.get(file_coverage.path)
        if existing is None:
            self._data[file_coverage.path] = file_coverage
            return file_coverage
        existing.merge(file_coverage)
        return existing

    def merge(self, other: CoverageMap) -> None:
        """Merge every entry of another map into this one."""
        for path in other:
            self.add_file_coverage(other.file_coverage_for(path).copy())

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Return the Istanbul ``coverage-final.json`` structure."""
        return {path: self._data[path].to_dict() for path in self.files()}

    @classmethod
    def from_dict(cls, data: dict[str, dict[str, Any]]) -> CoverageMap:
        """Build a map from the Istanbul ``coverage-final.json`` structure."""
        coverage_map = cls()
        for entry in data.values():
            coverage_map.add_file_coverage(FileCoverage.from_dict(entry))
        return coverage_map
