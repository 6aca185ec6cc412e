"""Codemap facade: one store, one provider, one scan worker."""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from types import TracebackType

from codemap.core.config import Settings, get_settings
from codemap.core.graph import Graph, GraphBuilder, render_diagram, render_text
from codemap.core.logging import get_logger
from codemap.core.models import ModuleBlock, ScanStats
from codemap.core.scanner import ProgressCallback, Scanner
from codemap.core.storage import BlockStore
from codemap.languages import Normalizer
from codemap.sources import JsonDumpProvider, SourceProvider

logger = get_logger(__name__)


class Codemap:
    """Entry point for normalizing modules and building call graphs.

    Rescans run on a single background worker, so there is one writer to
    the store at a time. Graph builds read the store directly and may run
    concurrently with a rescan.

    Usage:
        with Codemap.from_directory(Path(".codemap/ast")) as cm:
            graph = cm.build_call_graph("MyApp.Server", "handle_call", 3)
            print(cm.render_text(graph))
    """

    def __init__(
        self,
        provider: SourceProvider,
        settings: Settings | None = None,
        store: BlockStore | None = None,
        normalizer: Normalizer | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.provider = provider
        self.store = store if store is not None else BlockStore()
        self._scanner = Scanner(self.store, provider, normalizer)
        self._builder = GraphBuilder(
            self.store,
            arity_matching=self.settings.arity_matching,
            unknown_module=self.settings.unknown_module,
            max_nodes=self.settings.max_nodes,
            max_edges=self.settings.max_edges,
        )
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="codemap-scan")
        self._closed = False

    @classmethod
    def from_directory(
        cls,
        path: Path | None = None,
        settings: Settings | None = None,
        exclude_patterns: list[str] | None = None,
    ) -> Codemap:
        """Create a facade over a JSON dump directory and scan it once."""
        settings = settings or get_settings()
        provider = JsonDumpProvider(path or settings.source_dir, exclude_patterns)
        codemap = cls(provider, settings)
        try:
            codemap.rescan_now()
        except BaseException:
            codemap.close()
            raise
        return codemap

    def get_block(self, module: str) -> ModuleBlock:
        """Get the normalized block of a module. Raises ModuleNotFoundInStoreError."""
        return self.store.lookup(module)

    def list_modules(self) -> set[str]:
        return self.store.list()

    def rescan(self, on_progress: ProgressCallback | None = None) -> Future[ScanStats]:
        """Schedule a rescan on the scan worker."""
        self._check_open()
        logger.debug("Scheduling rescan")
        return self._executor.submit(self._scanner.rescan, on_progress)

    def rescan_now(self, on_progress: ProgressCallback | None = None) -> ScanStats:
        """Rescan synchronously in the calling thread."""
        self._check_open()
        return self._scanner.rescan(on_progress)

    def build_call_graph(
        self,
        module: str,
        function: str,
        arity: int,
        *,
        max_nodes: int | None = None,
        max_edges: int | None = None,
        cancel: threading.Event | None = None,
    ) -> Graph:
        """Build the call graph reachable from ``module.function/arity``.

        Raises:
            TraversalError: Invalid start, cancellation or internal failure
        """
        return self._builder.build(
            (module, function, arity),
            max_nodes=max_nodes,
            max_edges=max_edges,
            cancel=cancel,
        )

    def render_text(self, graph: Graph) -> str:
        return render_text(graph)

    def render_diagram(self, graph: Graph) -> str:
        return render_diagram(graph)

    def close(self) -> None:
        """Stop the scan worker, waiting for a running rescan to finish."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True)

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Codemap is closed")

    def __enter__(self) -> Codemap:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
