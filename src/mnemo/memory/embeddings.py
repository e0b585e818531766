"""
Embedding provider adapters.

Semantic search is optional: callers check is_available() and fall back
to keyword scoring when it is False or when a call raises ProviderError.
"""

from abc import ABC, abstractmethod
from typing import Any

import litellm
from litellm import aembedding

from mnemo.core.config import Settings
from mnemo.core.errors import ProviderError
from mnemo.core.logging import get_logger
from mnemo.core.typing import Vector

logger = get_logger("memory.embeddings")

# Disable LiteLLM's verbose logging
litellm.suppress_debug_info = True

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"


class EmbeddingProvider(ABC):
    """Turns text into vectors."""

    @abstractmethod
    def is_available(self) -> bool:
        """True when the provider is configured and can be called."""
        ...

    @abstractmethod
    async def embed(self, text: str) -> Vector:
        """Embed one text. Raises ProviderError."""
        ...

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[Vector]:
        """Embed several texts in one call, same order. Raises ProviderError."""
        ...

    @abstractmethod
    def get_model(self) -> str:
        """Model name stored alongside vectors."""
        ...


class NullEmbeddingProvider(EmbeddingProvider):
    """Provider used when semantic search is disabled."""

    def is_available(self) -> bool:
        return False

    async def embed(self, text: str) -> Vector:
        raise ProviderError("Embeddings are disabled")

    async def embed_batch(self, texts: list[str]) -> list[Vector]:
        raise ProviderError("Embeddings are disabled")

    def get_model(self) -> str:
        return "none"


def _item_vector(item: Any) -> Vector:
    if isinstance(item, dict):
        return list(item["embedding"])
    return list(item.embedding)


def _item_index(item: Any) -> int:
    if isinstance(item, dict):
        return item.get("index", 0)
    return getattr(item, "index", 0)


class LiteLLMEmbeddingProvider(EmbeddingProvider):
    """Embeddings through LiteLLM (OpenAI-compatible endpoints)."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_EMBEDDING_MODEL,
        api_base: str | None = None,
    ):
        self.api_key = api_key or None
        self.model = model
        self.api_base = api_base

    @classmethod
    def from_settings(cls, settings: Settings) -> "LiteLLMEmbeddingProvider":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.embedding_model,
            api_base=settings.embedding_api_base,
        )

    def is_available(self) -> bool:
        return self.api_key is not None

    def get_model(self) -> str:
        return self.model

    async def embed(self, text: str) -> Vector:
        vectors = await self._request([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[Vector]:
        if not texts:
            return []
        return await self._request(texts)

    async def _request(self, texts: list[str]) -> list[Vector]:
        if not self.is_available():
            raise ProviderError(
                "Embedding API key not configured. Set MNEMO_OPENAI_API_KEY or OPENAI_API_KEY."
            )

        kwargs: dict[str, Any] = {"model": self.model, "input": texts, "api_key": self.api_key}
        if self.api_base:
            kwargs["api_base"] = self.api_base

        try:
            response = await aembedding(**kwargs)
        except Exception as e:
            raise ProviderError(f"Embedding request failed: {e}") from e

        items = sorted(response.data, key=_item_index)
        if len(items) != len(texts):
            raise ProviderError(
                f"Embedding response has {len(items)} vectors for {len(texts)} inputs"
            )
        logger.debug(f"Embedded {len(texts)} text(s) with {self.model}")
        return [_item_vector(item) for item in items]


def create_provider(settings: Settings) -> EmbeddingProvider:
    """Configured provider, or the null provider when no key is set."""
    provider = LiteLLMEmbeddingProvider.from_settings(settings)
    if provider.is_available():
        return provider
    return NullEmbeddingProvider()
