"""In-memory source provider."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any

from codemap.languages.elixir import iter_modules


class InMemorySourceProvider:
    """Serves raw trees held in memory, keyed by module identifier."""

    def __init__(self, trees: Mapping[str, Any] | None = None) -> None:
        self._lock = threading.Lock()
        self._trees: dict[str, Any] = dict(trees or {})

    def add(self, tree: Any) -> list[str]:
        """Add every module found in a tree. Returns the module names added."""
        names = []
        with self._lock:
            for name, node in iter_modules(tree):
                self._trees[name] = node
                names.append(name)
        return names

    def set(self, module: str, tree: Any) -> None:
        """Store or replace the tree of one module."""
        with self._lock:
            self._trees[module] = tree

    def remove(self, module: str) -> None:
        """Forget a module."""
        with self._lock:
            self._trees.pop(module, None)

    def resolve(self, module: str) -> Any | None:
        return self._trees.get(module)

    def enumerate_modules(self) -> list[str]:
        with self._lock:
            return list(self._trees)
