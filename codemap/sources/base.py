"""Protocol for source providers."""

from __future__ import annotations

from typing import Any, Protocol


class SourceProvider(Protocol):
    """Supplies raw module syntax trees."""

    def resolve(self, module: str) -> Any | None:
        """Get the raw tree of a module, or None if the module is unknown.

        Raises SourceError when the module exists but cannot be read.
        """
        ...

    def enumerate_modules(self) -> list[str]:
        """List the identifiers of all modules this provider can resolve."""
        ...
