"""Source file matching.

The SourceMatcher scans a source root once and produces a MatchIndex: the set
of canonical paths that are in scope for instrumentation, plus the ordered
list of those files that the backfill pass walks.
"""

from __future__ import annotations

import fnmatch
import logging
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Sequence
    import os
    from pathlib import Path

    from pytest_covrunner.paths import CanonicalPath, PathCanonicalizer


logger = logging.getLogger(__name__)

SOURCE_GLOB = '*.py'
GLOBSTAR = '**'


def _match_segments(parts: Sequence[str], pattern_parts: Sequence[str]) -> bool:
    """Match path segments against pattern segments; ``**`` spans any number."""
    if not pattern_parts:
        return not parts
    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == GLOBSTAR:
        return any(_match_segments(parts[index:], rest) for index in range(len(parts) + 1))
    return bool(parts) and fnmatch.fnmatchcase(parts[0], head) and _match_segments(parts[1:], rest)


def is_ignored(relative_path: str, ignore_patterns: Sequence[str]) -> bool:
    """Check a root-relative POSIX path against exclusion globs.

    Wildcards stay within one path segment, so ``*.py`` only matches files
    directly under the root. ``**`` matches zero or more whole segments,
    which lets ``**/`` patterns match files directly under the root too.

    Args:
        relative_path: Path relative to the source root, using ``/``.
        ignore_patterns: Glob patterns to exclude.

    Returns:
        True if any pattern matches.
    """
    parts = relative_path.split('/')
    return any(_match_segments(parts, pattern.split('/')) for pattern in ignore_patterns)


class MatchIndex:
    """In-scope files of a run.

    Attributes:
        files: Canonical paths of every in-scope file, sorted.
        canonicalizer: The canonicalizer the index was built with.
    """

    def __init__(self, files: Sequence[CanonicalPath], canonicalizer: PathCanonicalizer) -> None:
        self.files: tuple[CanonicalPath, ...] = tuple(files)
        self.canonicalizer = canonicalizer
        self._members = frozenset(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def __contains__(self, path: object) -> bool:
        return path in self._members

    def matches(self, path: str | os.PathLike[str]) -> bool:
        """Return True if a path, in any spelling, is in scope."""
        return self.canonicalizer.canonicalize(path) in self


class SourceMatcher:
    """Builds the MatchIndex for a source root.

    Example:
        >>> from pathlib import Path
        >>> from pytest_covrunner.paths import PathCanonicalizer
        >>> index = SourceMatcher(Path('src'), ['**/migrations/*'], PathCanonicalizer()).build()
    """

    def __init__(
        self,
        source_root: Path,
        ignore_patterns: Sequence[str],
        canonicalizer: PathCanonicalizer,
    ) -> None:
        self.source_root = source_root
        self.ignore_patterns = list(ignore_patterns)
        self.canonicalizer = canonicalizer

    def build(self) -> MatchIndex:
        """Scan the source root and return the index of in-scope files.

        Returns:
            MatchIndex of every ``.py`` file under the root not matched by an
            ignore pattern. Empty if the root does not exist.
        """
        matched: set[CanonicalPath] = set()
        for path in self.source_root.rglob(SOURCE_GLOB):
            if not path.is_file():
                continue
            relative = path.relative_to(self.source_root).as_posix()
            if is_ignored(relative, self.ignore_patterns):
                logger.debug('Ignoring %s', relative)
                continue
            matched.add(self.canonicalizer.canonicalize(path))
        logger.debug('Matched %d source files under %s', len(matched), self.source_root)
        return MatchIndex(files=tuple(sorted(matched)), canonicalizer=self.canonicalizer)
