"""Shared fixtures for memory tests."""

import os
from pathlib import Path

import pytest

# Use litellm's bundled model cost map instead of fetching it over the
# network at import time (the offline fetch path deadlocks under pytest).
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from mnemo.core.errors import ProviderError
from mnemo.memory.embeddings import EmbeddingProvider
from mnemo.memory.service import MemoryService
from mnemo.memory.store import SQLiteMemoryStore


class FakeEmbeddings(EmbeddingProvider):
    """Deterministic provider: fixed vectors per text, optional failures."""

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        default: list[float] | None = None,
        fail_on: set[str] | None = None,
        fail_all: bool = False,
    ):
        self.vectors = vectors or {}
        self.default = default or [0.0, 0.0, 1.0]
        self.fail_on = fail_on or set()
        self.fail_all = fail_all
        self.calls: list[str] = []
        self.batch_calls: list[list[str]] = []

    def is_available(self) -> bool:
        return True

    def get_model(self) -> str:
        return "fake-embed"

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_all or text in self.fail_on:
            raise ProviderError(f"upstream failed for {text!r}")
        return list(self.vectors.get(text, self.default))

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls.append(list(texts))
        if self.fail_all:
            raise ProviderError("upstream failed")
        return [list(self.vectors.get(t, self.default)) for t in texts]


@pytest.fixture
async def store(tmp_path: Path):
    """Create a temporary memory store."""
    store = SQLiteMemoryStore(tmp_path / "test.db")
    await store.connect()
    yield store
    await store.close()


@pytest.fixture
def service(store: SQLiteMemoryStore) -> MemoryService:
    """Keyword-only service over the temporary store."""
    return MemoryService(store)


@pytest.fixture
def fake_embeddings() -> type[FakeEmbeddings]:
    """The fake provider class, for tests that need custom vectors."""
    return FakeEmbeddings
