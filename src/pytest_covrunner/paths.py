"""Canonical path handling.

Every place that compares file paths (the match index, the import hook, the
backfill pass and the coverage map) goes through one PathCanonicalizer, so
two spellings of the same physical file always compare equal.

Example:
    >>> canonicalizer = PathCanonicalizer(case_insensitive=True)
    >>> canonicalizer.canonicalize('/Src/App.py') == canonicalizer.canonicalize('/src/app.py')
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import NewType


CanonicalPath = NewType('CanonicalPath', str)


def is_case_insensitive_platform() -> bool:
    """Return True when the platform folds path case (Windows)."""
    return os.path.normcase('A') == 'a'


@dataclass(frozen=True)
class PathCanonicalizer:
    """Turns arbitrary path spellings into CanonicalPath values.

    Attributes:
        case_insensitive: Lower-case paths before comparing them. Defaults to
            the platform's behaviour.
    """

    case_insensitive: bool = field(default_factory=is_case_insensitive_platform)

    def canonicalize(self, path: str | os.PathLike[str]) -> CanonicalPath:
        """Return the absolute, normalised form of a path.

        Args:
            path: Any path, relative paths are resolved against the cwd.

        Returns:
            The canonical path string.
        """
        absolute = os.path.normpath(os.path.abspath(os.fspath(path)))
        if self.case_insensitive:
            absolute = absolute.lower()
        return CanonicalPath(absolute)

