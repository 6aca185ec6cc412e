"""
Core module: data models, exceptions, configuration and storage.

Models (models.py):
    - ModuleBlock / FunctionBlock: Normalized module and function clauses
    - Call: A call made by a function clause
    - FunctionRef: A (module, function, arity) call graph node
    - ScanStats: Counts reported by a rescan

Exceptions (exceptions.py):
    - CodemapError: Base exception for all codemap errors
    - NormalizationError: A module tree has an unrecognized shape
    - TraversalError: Call graph construction failed

Storage (storage/):
    - BlockStore: Concurrent module -> block cache

The Codemap facade lives in codemap.core.codemap.
"""

from codemap.core.config import ArityMatching, Settings, get_settings
from codemap.core.exceptions import (
    CodemapError,
    InvalidFunctionRefError,
    ModuleNotFoundInStoreError,
    NormalizationError,
    SourceError,
    TraversalCancelledError,
    TraversalError,
)
from codemap.core.models import (
    Attribute,
    BlockKind,
    Call,
    FunctionBlock,
    FunctionRef,
    ModuleBlock,
    Position,
    ScanStats,
)
from codemap.core.storage import BlockStore

__all__ = [
    # Models
    "Attribute",
    "BlockKind",
    "Call",
    "FunctionBlock",
    "FunctionRef",
    "ModuleBlock",
    "Position",
    "ScanStats",
    # Exceptions
    "CodemapError",
    "InvalidFunctionRefError",
    "ModuleNotFoundInStoreError",
    "NormalizationError",
    "SourceError",
    "TraversalCancelledError",
    "TraversalError",
    # Config
    "ArityMatching",
    "Settings",
    "get_settings",
    # Storage
    "BlockStore",
]
