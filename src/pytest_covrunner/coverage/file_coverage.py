"""Per-file coverage data.

A FileCoverage holds the static description of a file's coverable items
(statements, functions and branches, keyed by the integer IDs assigned at
instrumentation time) together with their hit counters. The layout mirrors
the Istanbul ``coverage-final.json`` per-file object so the data can be read
by any tool that consumes that format.

Example:
    >>> fc = FileCoverage(path='/src/app.py')
    >>> sid = fc.add_statement(Range.from_coords(1, 0, 1, 5))
    >>> fc.s[sid] += 2
    >>> fc.get_line_coverage()
    {1: 2}
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Position:
    """A point in a source file (1-based line, 0-based column)."""

    line: int
    column: int

    def to_dict(self) -> dict[str, int]:
        """Return the Istanbul representation of this position."""
        return {'line': self.line, 'column': self.column}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Position:
        """Build a position from its Istanbul representation."""
        return cls(line=int(data['line']), column=int(data['column']))


@dataclass(frozen=True)
class Range:
    """A span between two positions in the same file."""

    start: Position
    end: Position

    @classmethod
    def from_coords(cls, start_line: int, start_column: int, end_line: int, end_column: int) -> Range:
        """Build a range from four coordinates."""
        return cls(Position(start_line, start_column), Position(end_line, end_column))

    def to_dict(self) -> dict[str, dict[str, int]]:
        """Return the Istanbul representation of this range."""
        return {'start': self.start.to_dict(), 'end': self.end.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Range:
        """Build a range from its Istanbul representation."""
        return cls(Position.from_dict(data['start']), Position.from_dict(data['end']))


@dataclass(frozen=True)
class FunctionMapping:
    """Static description of a function.

    Attributes:
        name: Function name, ``(anonymous_N)`` for lambdas.
        decl: Range of the declaration header.
        loc: Range of the whole function.
        line: Line of the declaration.
    """

    name: str
    decl: Range
    loc: Range
    line: int

    def to_dict(self) -> dict[str, Any]:
        """Return the Istanbul representation of this function."""
        return {'name': self.name, 'decl': self.decl.to_dict(), 'loc': self.loc.to_dict(), 'line': self.line}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FunctionMapping:
        """Build a function mapping from its Istanbul representation."""
        loc = Range.from_dict(data['loc'])
        decl = Range.from_dict(data['decl']) if 'decl' in data else loc
        return cls(name=data['name'], decl=decl, loc=loc, line=int(data.get('line', loc.start.line)))


@dataclass(frozen=True)
class BranchMapping:
    """Static description of a branch point.

    Attributes:
        type: One of ``if``, ``cond-expr``, ``binary-expr`` or ``switch``.
        loc: Range of the whole branching construct.
        locations: One range per path through the branch.
        line: Line the branch starts on.
    """

    type: str
    loc: Range
    locations: tuple[Range, ...]
    line: int

    def to_dict(self) -> dict[str, Any]:
        """Return the Istanbul representation of this branch."""
        return {
            'type': self.type,
            'loc': self.loc.to_dict(),
            'locations': [location.to_dict() for location in self.locations],
            'line': self.line,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BranchMapping:
        """Build a branch mapping from its Istanbul representation."""
        loc = Range.from_dict(data['loc'])
        return cls(
            type=data['type'],
            loc=loc,
            locations=tuple(Range.from_dict(location) for location in data['locations']),
            line=int(data.get('line', loc.start.line)),
        )


@dataclass
class FileCoverage:
    """Coverage data for a single file.

    Attributes:
        path: Canonical path of the file.
        statement_map: Statement ID to source range.
        fn_map: Function ID to function description.
        branch_map: Branch ID to branch description.
        s: Statement ID to hit count.
        f: Function ID to hit count.
        b: Branch ID to per-path hit counts.
        input_source_map: Source map of a generated file, if one was found.
    """

    path: str
    statement_map: dict[int, Range] = field(default_factory=dict)
    fn_map: dict[int, FunctionMapping] = field(default_factory=dict)
    branch_map: dict[int, BranchMapping] = field(default_factory=dict)
    s: dict[int, int] = field(default_factory=dict)
    f: dict[int, int] = field(default_factory=dict)
    b: dict[int, list[int]] = field(default_factory=dict)
    input_source_map: dict[str, Any] | None = None

    def add_statement(self, location: Range, hits: int = 0) -> int:
        """Register a statement and return its ID."""
        statement_id = len(self.statement_map)
        self.statement_map[statement_id] = location
        self.s[statement_id] = hits
        return statement_id

    def add_function(self, mapping: FunctionMapping, hits: int = 0) -> int:
        """Register a function and return its ID."""
        function_id = len(self.fn_map)
        self.fn_map[function_id] = mapping
        self.f[function_id] = hits
        return function_id

    def add_branch(self, mapping: BranchMapping, hits: list[int] | None = None) -> int:
        """Register a branch point and return its ID."""
        branch_id = len(self.branch_map)
        self.branch_map[branch_id] = mapping
        self.b[branch_id] = list(hits) if hits is not None else [0] * len(mapping.locations)
        return branch_id

    def reset_hits(self) -> None:
        """Set every statement, function and branch counter to zero."""
        for statement_id in self.s:
            self.s[statement_id] = 0
        for function_id in self.f:
            self.f[function_id] = 0
        for branch_id, counts in self.b.items():
            self.b[branch_id] = [0] * len(counts)

    def has_hits(self) -> bool:
        """Return True if any counter is non-zero."""
        return (
            any(self.s.values())
            or any(self.f.values())
            or any(count for counts in self.b.values() for count in counts)
        )

    def get_line_coverage(self) -> dict[int, int]:
        """Derive line hit counts from statements.

        A line's count is the highest count of any statement starting on it.

        Returns:
            Line number to hit count, sorted by line.
        """
        lines: dict[int, int] = {}
        for statement_id, location in self.statement_map.items():
            line = location.start.line
            count = self.s.get(statement_id, 0)
            if line not in lines or lines[line] < count:
                lines[line] = count
        return dict(sorted(lines.items()))

    def get_uncovered_lines(self) -> list[int]:
        """Return the lines whose statements never ran."""
        return [line for line, count in self.get_line_coverage().items() if count == 0]

    def merge(self, other: FileCoverage) -> None:
        """Merge another FileCoverage for the same file into this one.

        Items are matched by location rather than by ID, so coverage produced
        from different generated files that map into one original file
        combines correctly. Unmatched items from ``other`` are appended.

        Args:
            other: Coverage for the same path.
        """
        statements = {location: statement_id for statement_id, location in self.statement_map.items()}
        for other_id, location in other.statement_map.items():
            hits = other.s.get(other_id, 0)
            if location in statements:
                self.s[statements[location]] += hits
            else:
                statements[location] = self.add_statement(location, hits)

        functions = {(mapping.name, mapping.loc): function_id for function_id, mapping in self.fn_map.items()}
        for other_id, mapping in other.fn_map.items():
            hits = other.f.get(other_id, 0)
            key = (mapping.name, mapping.loc)
            if key in functions:
                self.f[functions[key]] += hits
            else:
                functions[key] = self.add_function(mapping, hits)

        branches = {(mapping.loc, mapping.locations): branch_id for branch_id, mapping in self.branch_map.items()}
        for other_id, mapping in other.branch_map.items():
            counts = other.b.get(other_id, [0] * len(mapping.locations))
            key = (mapping.loc, mapping.locations)
            if key in branches:
                existing = self.b[branches[key]]
                self.b[branches[key]] = [left + right for left, right in zip(existing, counts, strict=True)]
            else:
                branches[key] = self.add_branch(mapping, counts)

    def copy(self) -> FileCoverage:
        """Return a deep copy with independent counters."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Return the Istanbul ``coverage-final.json`` entry for this file."""
        data: dict[str, Any] = {
            'path': self.path,
            'statementMap': {str(key): location.to_dict() for key, location in self.statement_map.items()},
            'fnMap': {str(key): mapping.to_dict() for key, mapping in self.fn_map.items()},
            'branchMap': {str(key): mapping.to_dict() for key, mapping in self.branch_map.items()},
            's': {str(key): count for key, count in self.s.items()},
            'f': {str(key): count for key, count in self.f.items()},
            'b': {str(key): list(counts) for key, counts in self.b.items()},
        }
        if self.input_source_map is not None:
            data['inputSourceMap'] = self.input_source_map
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileCoverage:
        """Build a FileCoverage from an Istanbul per-file object."""
        return cls(
            path=data['path'],
            statement_map={int(key): Range.from_dict(value) for key, value in data.get('statementMap', {}).items()},
            fn_map={int(key): FunctionMapping.from_dict(value) for key, value in data.get('fnMap', {}).items()},
            branch_map={int(key): BranchMapping.from_dict(value) for key, value in data.get('branchMap', {}).items()},
            s={int(key): int(value) for key, value in data.get('s', {}).items()},
            f={int(key): int(value) for key, value in data.get('f', {}).items()},
            b={int(key): [int(count) for count in value] for key, value in data.get('b', {}).items()},
            input_source_map=data.get('inputSourceMap'),
        )
