"""
Source providers: where raw module syntax trees come from.

Components:
    - SourceProvider: Protocol with resolve() and enumerate_modules()
    - InMemorySourceProvider: Trees held in memory (embedding, tests)
    - JsonDumpProvider: Directory of quoted trees dumped as JSON
"""

from codemap.sources.base import SourceProvider
from codemap.sources.json_dump import (
    JsonDumpProvider,
    decode_term,
    dump_tree,
    encode_term,
    load_tree,
)
from codemap.sources.memory import InMemorySourceProvider

__all__ = [
    "SourceProvider",
    "InMemorySourceProvider",
    "JsonDumpProvider",
    "decode_term",
    "encode_term",
    "dump_tree",
    "load_tree",
]
