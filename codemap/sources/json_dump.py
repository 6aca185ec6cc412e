"""Source provider reading quoted trees dumped as JSON.

JSON has no tuple type, so tuples are written as ``{"tuple": [...]}``.
Everything else maps directly: arrays are lists, strings are atoms or
binaries, ``null``/``true``/``false`` are ``nil``/``true``/``false``.
"""

from __future__ import annotations

import fnmatch
import json
import threading
from pathlib import Path
from typing import Any

from codemap.core.exceptions import SourceError
from codemap.core.logging import get_logger
from codemap.languages.elixir import iter_modules, select_module

logger = get_logger(__name__)

_TUPLE_KEY = "tuple"

DEFAULT_EXCLUDES = [
    "_build",
    "deps",
    "node_modules",
]


def decode_term(value: Any) -> Any:
    """Convert a decoded JSON value into a quoted term."""
    if isinstance(value, list):
        return [decode_term(v) for v in value]
    if isinstance(value, dict):
        if set(value) != {_TUPLE_KEY} or not isinstance(value[_TUPLE_KEY], list):
            raise SourceError(f"Unexpected JSON object in quoted tree: {sorted(value)}")
        return tuple(decode_term(v) for v in value[_TUPLE_KEY])
    return value


def encode_term(term: Any) -> Any:
    """Convert a quoted term into a JSON-serializable value."""
    if isinstance(term, tuple):
        return {_TUPLE_KEY: [encode_term(t) for t in term]}
    if isinstance(term, list):
        return [encode_term(t) for t in term]
    return term


def dump_tree(tree: Any, file: Path) -> None:
    """Write a quoted tree to a JSON dump file."""
    file.parent.mkdir(parents=True, exist_ok=True)
    file.write_text(json.dumps(encode_term(tree), indent=1), encoding="utf-8")


def load_tree(file: Path) -> Any:
    """Read a quoted tree from a JSON dump file."""
    try:
        return decode_term(json.loads(file.read_text(encoding="utf-8")))
    except (OSError, UnicodeDecodeError) as e:
        raise SourceError(f"Cannot read {file}: {e}") from e
    except json.JSONDecodeError as e:
        raise SourceError(f"Invalid JSON in {file}: {e}") from e
    except RecursionError as e:
        raise SourceError(f"Tree in {file} is nested too deeply") from e


class JsonDumpProvider:
    """Serves modules from a directory of ``*.json`` quoted-tree dumps.

    A file may hold one ``defmodule`` or a ``__block__`` of several; nested
    modules are indexed under their full name.
    """

    def __init__(self, directory: Path, exclude_patterns: list[str] | None = None) -> None:
        self.directory = directory
        self._excludes = DEFAULT_EXCLUDES + (exclude_patterns or [])
        self._lock = threading.Lock()
        self._index: dict[str, Path] = {}

    def enumerate_modules(self) -> list[str]:
        """Re-index the directory and list all modules found."""
        index: dict[str, Path] = {}
        for file in self._dump_files():
            try:
                tree = load_tree(file)
            except SourceError as e:
                logger.warning("Skipping %s: %s", file, e)
                continue
            for name, _ in iter_modules(tree):
                if name in index:
                    logger.warning("Module %s defined in %s and %s", name, index[name], file)
                index[name] = file
        with self._lock:
            self._index = index
        return list(index)

    def resolve(self, module: str) -> Any | None:
        file = self._index.get(module)
        if file is None or not file.exists():
            self.enumerate_modules()
            file = self._index.get(module)
            if file is None:
                return None
        return select_module(load_tree(file), module)

    def _dump_files(self) -> list[Path]:
        if not self.directory.is_dir():
            raise SourceError(f"Source directory not found: {self.directory}")
        files = []
        for file in sorted(self.directory.rglob("*.json")):
            relative = file.relative_to(self.directory)
            if not self._should_exclude(relative):
                files.append(file)
        return files

    def _should_exclude(self, path: Path) -> bool:
        """Skip hidden components and any component matching an exclusion pattern."""
        for part in path.parts:
            if part.startswith("."):
                return True
            for pattern in self._excludes:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return False
