"""Instrumentation module for coverage collection.

This module contains the components that turn in-scope source files into
code that records its own execution, and the import hook that runs that code
in place of the original.

Example usage:
    >>> source = '''
    ... def is_adult(age):
    ...     return age >= 18
    ... '''
    >>> result = instrument_source(source, '/src/example.py', '_cov')
    >>> len(result.file_coverage.statement_map)  # the def and the return
    2
    >>> [fn.name for fn in result.file_coverage.fn_map.values()]
    ['is_adult']
"""

from __future__ import annotations

from pytest_covrunner.instrumentation.import_hooks import FileSourceProvider, ModuleHookManager, SourceProvider
from pytest_covrunner.instrumentation.instrumenter import InstrumentedFile, instrument_source
from pytest_covrunner.instrumentation.matcher import MatchIndex, SourceMatcher
from pytest_covrunner.instrumentation.transformer import Transformer


__all__ = [
    'FileSourceProvider',
    'InstrumentedFile',
    'MatchIndex',
    'ModuleHookManager',
    'SourceMatcher',
    'SourceProvider',
    'Transformer',
    'instrument_source',
]
