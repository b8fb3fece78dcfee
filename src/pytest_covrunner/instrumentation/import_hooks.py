"""Import hooks for coverage instrumentation.

This module provides the import hook (sys.meta_path) that intercepts imports
of in-scope source files and executes instrumented code in their place.

The import hook works as follows:
1. CoverageFinder is registered at the front of sys.meta_path
2. When Python imports a module, CoverageFinder.find_spec() asks the regular
   path-based finder where the module lives
3. If the module's source file is in the MatchIndex, the spec's loader is
   replaced with an InstrumentingLoader
4. InstrumentingLoader reads the raw text through a SourceProvider, runs it
   through the Transformer and compiles the instrumented AST
5. The module's FileCounters recorder is bound under the coverage variable
   name before the module body executes

Modules imported before the hook existed are still cached in sys.modules
uninstrumented, so ModuleHookManager evicts them before installing the hook.

Example:
    >>> manager = ModuleHookManager()
    >>> manager.installed
    False
    >>> manager.uninstall()  # safe when nothing was installed
"""

from __future__ import annotations

from importlib.abc import MetaPathFinder
from importlib.machinery import PathFinder, SourceFileLoader
import importlib.util
import logging
from pathlib import Path
import sys
from typing import TYPE_CHECKING, Protocol


if TYPE_CHECKING:
    from collections.abc import Sequence
    from importlib.machinery import ModuleSpec
    import types

    from pytest_covrunner.coverage.aggregator import CoverageAggregator, FileCounters
    from pytest_covrunner.instrumentation.matcher import MatchIndex
    from pytest_covrunner.instrumentation.transformer import Transformer


logger = logging.getLogger(__name__)


class SourceProvider(Protocol):
    """Supplies the raw text of a module's source file."""

    def get_source(self, path: str) -> str:
        """Return the decoded source text of a file.

        Args:
            path: Path of the source file.

        Returns:
            The file's text.
        """
        ...


class FileSourceProvider:
    """SourceProvider reading from disk, honouring PEP 263 encoding cookies."""

    def get_source(self, path: str) -> str:
        """Read and decode a source file."""
        return importlib.util.decode_source(Path(path).read_bytes())


class InstrumentingLoader(SourceFileLoader):
    """Loader that executes instrumented code for an in-scope source file.

    Bytecode caches are neither read nor written: the code object is always
    built from the current source text.
    """

    def __init__(
        self,
        fullname: str,
        path: str,
        transformer: Transformer,
        aggregator: CoverageAggregator,
        provider: SourceProvider,
    ) -> None:
        """Initialize the loader.

        Args:
            fullname: The fully qualified module name.
            path: Path of the module's source file.
            transformer: Instruments the source text.
            aggregator: Receives the file's coverage entry.
            provider: Supplies the raw source text.
        """
        super().__init__(fullname, path)
        self._transformer = transformer
        self._aggregator = aggregator
        self._provider = provider

    def _instrument(self) -> tuple[types.CodeType, FileCounters]:
        """Instrument the source file and register it with the aggregator."""
        source = self._provider.get_source(self.path)
        instrumented = self._transformer.transform(source, self.path)
        counters = self._aggregator.register(instrumented.file_coverage)
        logger.debug('Instrumented %s', self.path)
        # Compiled against the original filename so tracebacks and linecache
        # point at the real source.
        code = compile(instrumented.tree, self.path, 'exec', dont_inherit=True)
        return code, counters

    def get_code(self, fullname: str) -> types.CodeType:  # noqa: ARG002
        """Return the module's uninstrumented code object.

        Used by introspection (runpy, pkgutil) rather than import, so nothing
        is registered with the aggregator and no counters are referenced.
        """
        return self.source_to_code(self._provider.get_source(self.path), self.path)

    def exec_module(self, module: types.ModuleType) -> None:
        """Bind the hit recorder and execute the instrumented module body.

        Args:
            module: The module to execute code in.
        """
        code, counters = self._instrument()
        module.__dict__[self._transformer.coverage_variable] = counters
        # Note: This exec is intentional - the code object was compiled from
        # the module's own source after instrumentation.
        exec(code, module.__dict__)  # noqa: S102


class CoverageFinder(MetaPathFinder):
    """Finder that routes in-scope source files to InstrumentingLoader.

    Modules outside the MatchIndex are left to the remaining finders on
    sys.meta_path, untouched.
    """

    def __init__(
        self,
        match_index: MatchIndex,
        transformer: Transformer,
        aggregator: CoverageAggregator,
        provider: SourceProvider,
    ) -> None:
        self._match_index = match_index
        self._transformer = transformer
        self._aggregator = aggregator
        self._provider = provider

    def find_spec(
        self,
        fullname: str,
        path: Sequence[str] | None,
        target: types.ModuleType | None = None,
    ) -> ModuleSpec | None:
        """Find a module spec for the given module name.

        Args:
            fullname: The fully qualified module name.
            path: The parent package's search path, None for top-level modules.
            target: The module being reloaded, if any.

        Returns:
            ModuleSpec with InstrumentingLoader if the module's source is in
            scope, None otherwise.
        """
        spec = PathFinder.find_spec(fullname, path, target)
        if spec is None or spec.origin is None or not isinstance(spec.loader, SourceFileLoader):
            return None
        if not self._match_index.matches(spec.origin):
            return None

        spec.loader = InstrumentingLoader(
            fullname,
            spec.origin,
            transformer=self._transformer,
            aggregator=self._aggregator,
            provider=self._provider,
        )
        return spec


class ModuleHookManager:
    """Owns the lifetime of the coverage import hook for one run."""

    def __init__(self) -> None:
        self._finder: CoverageFinder | None = None

    @property
    def installed(self) -> bool:
        """Return True while the hook is on sys.meta_path."""
        return self._finder is not None

    def evict_cached_modules(self, match_index: MatchIndex) -> list[str]:
        """Remove already-imported in-scope modules from sys.modules.

        The next import of an evicted module goes through the hook and is
        instrumented. Objects that kept a reference to the old module keep
        using it.

        Args:
            match_index: The in-scope files.

        Returns:
            Names of the evicted modules.
        """
        evicted: list[str] = []
        for name, module in list(sys.modules.items()):
            filename = getattr(module, '__file__', None)
            if isinstance(filename, str) and match_index.matches(filename):
                del sys.modules[name]
                evicted.append(name)
        if evicted:
            logger.debug('Evicted %d cached modules: %s', len(evicted), ', '.join(evicted))
        return evicted

    def install(
        self,
        match_index: MatchIndex,
        transformer: Transformer,
        aggregator: CoverageAggregator,
        provider: SourceProvider | None = None,
    ) -> None:
        """Insert the coverage finder at the front of sys.meta_path.

        Any hook previously installed by this manager is removed first.

        Args:
            match_index: The in-scope files.
            transformer: Instruments source text.
            aggregator: Receives coverage entries of loaded files.
            provider: Supplies raw source text. Defaults to reading from disk.
        """
        self.uninstall()
        self._finder = CoverageFinder(
            match_index,
            transformer,
            aggregator,
            provider if provider is not None else FileSourceProvider(),
        )
        sys.meta_path.insert(0, self._finder)

    def uninstall(self) -> None:
        """Remove the coverage finder from sys.meta_path.

        It is safe to call this when no hook is installed.
        """
        if self._finder is not None and self._finder in sys.meta_path:
            sys.meta_path.remove(self._finder)
        self._finder = None
