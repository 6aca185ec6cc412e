"""Shared fixtures."""

from collections.abc import Callable
from typing import Any

import pytest

from codemap.core.graph import GraphBuilder
from codemap.core.scanner import Scanner
from codemap.core.storage import BlockStore
from codemap.sources import InMemorySourceProvider


@pytest.fixture
def provider() -> InMemorySourceProvider:
    return InMemorySourceProvider()


@pytest.fixture
def store() -> BlockStore:
    return BlockStore()


@pytest.fixture
def scanner(store: BlockStore, provider: InMemorySourceProvider) -> Scanner:
    return Scanner(store, provider)


@pytest.fixture
def load(
    provider: InMemorySourceProvider, scanner: Scanner, store: BlockStore
) -> Callable[..., BlockStore]:
    """Add quoted module trees to the provider and scan them into the store."""

    def _load(*trees: Any) -> BlockStore:
        for tree in trees:
            provider.add(tree)
        stats = scanner.rescan()
        assert stats.failed == 0, stats.errors
        return store

    return _load


@pytest.fixture
def builder(store: BlockStore) -> GraphBuilder:
    return GraphBuilder(store)
