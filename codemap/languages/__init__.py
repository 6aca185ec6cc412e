"""
Normalizers: turn raw module syntax trees into normalized blocks.

Normalization runs in two stages:
    1. Classification maps concrete syntax shapes onto a closed set of node
       kinds (nodes.py): qualified call, local call, pipeline, with chain,
       grouping, sequence, statement block and leaf.
    2. Call extraction (extract.py) dispatches over those node kinds only,
       resolving aliases and pipeline arities as it goes.

Components:
    - Normalizer: Protocol defining the normalizer interface
    - ElixirNormalizer: Normalizer for Elixir quoted trees
    - CallExtractor: Grammar-independent call extraction

Adding a new language:
    1. Classify its syntax tree into the node kinds in nodes.py
    2. Implement normalize() returning a ModuleBlock
"""

from codemap.languages.base import Normalizer
from codemap.languages.elixir import ElixirNormalizer, classify, iter_modules, select_module
from codemap.languages.extract import CallExtractor

__all__ = [
    "Normalizer",
    "ElixirNormalizer",
    "CallExtractor",
    "classify",
    "iter_modules",
    "select_module",
]
