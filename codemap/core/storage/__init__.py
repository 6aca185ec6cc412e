"""
Storage layer: the in-memory cache of normalized blocks.

Components:
    - BlockStore: module identifier -> ModuleBlock, lock-free reads,
      atomic per-key replacement

The store lives as long as the process that created it; nothing is
persisted to disk.
"""

from codemap.core.storage.blocks import BlockStore

__all__ = [
    "BlockStore",
]
