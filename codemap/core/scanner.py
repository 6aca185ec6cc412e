"""Scanner that coordinates source providers, normalization and storage."""

from __future__ import annotations

from collections.abc import Callable

from codemap.core.exceptions import CodemapError, NormalizationError
from codemap.core.logging import get_logger
from codemap.core.models import ModuleBlock, ScanStats
from codemap.core.storage import BlockStore
from codemap.languages import ElixirNormalizer, Normalizer
from codemap.sources import SourceProvider

logger = get_logger(__name__)

ProgressCallback = Callable[[str, int, int], None]


class Scanner:
    """Normalizes every module a provider knows about into a BlockStore."""

    def __init__(
        self,
        store: BlockStore,
        provider: SourceProvider,
        normalizer: Normalizer | None = None,
    ) -> None:
        """Initialize with a store to fill and a provider to read from."""
        self._store = store
        self._provider = provider
        self._normalizer = normalizer or ElixirNormalizer()

    def rescan(self, on_progress: ProgressCallback | None = None) -> ScanStats:
        """Normalize all modules and replace their store entries.

        A module that fails to resolve or normalize is logged and counted;
        its previous block, if any, stays in the store. Modules that the
        provider no longer lists are removed.

        Args:
            on_progress: Optional callback for progress updates (module, current, total)

        Returns:
            ScanStats with counts of modules/functions/calls processed
        """
        stats = ScanStats()
        modules = self._provider.enumerate_modules()
        total = len(modules)
        logger.info("Scanning %d modules", total)

        for i, module in enumerate(modules):
            try:
                block = self.scan_module(module)
            except CodemapError as e:
                stats.failed += 1
                stats.errors.append(f"{module}: {e}")
                logger.warning("Failed to normalize %s: %s", module, e)
            else:
                stats.modules += 1
                stats.functions += len(block.children)
                stats.calls += sum(len(f.calls) for f in block.children)

            if on_progress:
                on_progress(module, i + 1, total)

        listed = set(modules)
        for module in self._store.list() - listed:
            if self._store.remove(module):
                stats.removed += 1
                logger.debug("Removed %s (no longer provided)", module)

        logger.info("Scan complete: %r", stats)
        return stats

    def scan_module(self, module: str) -> ModuleBlock:
        """Normalize one module and store its block.

        Raises:
            NormalizationError: The module is unknown or has an unrecognized shape
            SourceError: The provider could not read the module
        """
        tree = self._provider.resolve(module)
        if tree is None:
            raise NormalizationError(f"Module '{module}' is not provided")
        try:
            block = self._normalizer.normalize(tree, module)
        except (
            AttributeError, IndexError, KeyError, TypeError, ValueError, RecursionError
        ) as e:
            raise NormalizationError(f"Malformed tree for '{module}': {e}") from e
        self._store.put(module, block)
        logger.debug("Normalized module %s", module)
        return block
