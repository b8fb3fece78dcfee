"""Source map support.

Coverage of generated files is translated back onto the files they were
generated from.
"""

from pytest_covrunner.sourcemaps.source_map import OriginalPosition, SourceMap
from pytest_covrunner.sourcemaps.store import SourceMapStore


__all__ = ['OriginalPosition', 'SourceMap', 'SourceMapStore']
