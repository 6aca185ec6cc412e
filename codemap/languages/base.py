"""Protocol for module normalizers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from codemap.core.models import ModuleBlock


class Normalizer(Protocol):
    """Protocol for turning one raw module tree into a ModuleBlock."""

    def normalize(self, tree: object, module: str | None = None) -> ModuleBlock:
        """Normalize a raw module tree. Raises NormalizationError."""
        ...
