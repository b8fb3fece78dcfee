"""Source transformer used by the import hook and the backfill pass.

The Transformer is a pure function of (raw text, file name, optional source
map): it looks for an adjacent ``<file>.map`` source map, canonicalises the
file name with the run's PathCanonicalizer and hands the text to the
instrumenter. Calling it twice on the same input produces the same output,
which is what lets the backfill pass rebuild the descriptor of a file that
was never imported.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pytest_covrunner.instrumentation.instrumenter import instrument_source


if TYPE_CHECKING:
    from pytest_covrunner.instrumentation.instrumenter import InstrumentedFile
    from pytest_covrunner.paths import PathCanonicalizer


logger = logging.getLogger(__name__)

SOURCE_MAP_SUFFIX = '.map'


def load_adjacent_source_map(filename: str) -> dict[str, Any] | None:
    """Read ``<filename>.map`` if it exists.

    Args:
        filename: Path of the (possibly generated) source file.

    Returns:
        The parsed source map, or None when it is missing or unreadable.
    """
    map_path = Path(f'{filename}{SOURCE_MAP_SUFFIX}')
    try:
        data = json.loads(map_path.read_text(encoding='utf-8'))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        logger.debug('Ignoring unreadable source map %s: %s', map_path, exc)
        return None
    if not isinstance(data, dict):
        logger.debug('Ignoring source map %s: not a JSON object', map_path)
        return None
    return data


class Transformer:
    """Turns raw source text into instrumented code.

    Attributes:
        coverage_variable: Global name instrumented code records hits through.
    """

    def __init__(self, coverage_variable: str, canonicalizer: PathCanonicalizer) -> None:
        """Initialize the transformer.

        Args:
            coverage_variable: Global name instrumented code records hits through.
            canonicalizer: The run's path canonicalizer.
        """
        self.coverage_variable = coverage_variable
        self._canonicalizer = canonicalizer

    def transform(
        self,
        source: str,
        filename: str,
        source_map: dict[str, Any] | None = None,
    ) -> InstrumentedFile:
        """Instrument one file's source text.

        Args:
            source: The raw source text.
            filename: Path of the file the text was read from.
            source_map: Source map to use instead of looking for an adjacent one.

        Returns:
            The instrumented file, keyed by its canonical path.

        Raises:
            SyntaxError: If the source cannot be parsed.
        """
        if source_map is None:
            source_map = load_adjacent_source_map(filename)
        path = self._canonicalizer.canonicalize(filename)
        return instrument_source(source, path, self.coverage_variable, input_source_map=source_map)
