"""In-memory block store."""

from __future__ import annotations

import threading
from collections.abc import Iterator

from codemap.core.exceptions import ModuleNotFoundInStoreError
from codemap.core.models import ModuleBlock


class BlockStore:
    """Maps module identifiers to normalized blocks.

    Reads never take the lock: a key always holds either the old or the new
    block, because blocks are immutable and replaced with a single
    assignment. Writers serialize on a short per-key lock section.
    """

    def __init__(self) -> None:
        self._blocks: dict[str, ModuleBlock] = {}
        self._write_lock = threading.Lock()

    def get(self, module: str) -> ModuleBlock | None:
        """Get a block, or None if the module is not cached."""
        return self._blocks.get(module)

    def lookup(self, module: str) -> ModuleBlock:
        """Get a block by module identifier."""
        block = self._blocks.get(module)
        if block is None:
            raise ModuleNotFoundInStoreError(f"Module '{module}' not found")
        return block

    def put(self, module: str, block: ModuleBlock) -> None:
        """Insert or replace the block of one module."""
        with self._write_lock:
            self._blocks[module] = block

    def remove(self, module: str) -> bool:
        """Drop a module. Returns whether it was present."""
        with self._write_lock:
            return self._blocks.pop(module, None) is not None

    def list(self) -> set[str]:
        """Identifiers of all cached modules."""
        with self._write_lock:
            return set(self._blocks)

    def clear(self) -> None:
        """Drop all modules."""
        with self._write_lock:
            self._blocks.clear()

    def __contains__(self, module: object) -> bool:
        return module in self._blocks

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[str]:
        return iter(self.list())
