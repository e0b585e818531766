"""Tests for embedding providers."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from mnemo.core.config import Settings
from mnemo.core.errors import ProviderError
from mnemo.memory.embeddings import (
    LiteLLMEmbeddingProvider,
    NullEmbeddingProvider,
    create_provider,
)


def response(*vectors, order=None):
    items = [{"index": i, "embedding": v} for i, v in enumerate(vectors)]
    if order:
        items = [items[i] for i in order]
    return SimpleNamespace(data=items)


async def test_embed_single_text():
    provider = LiteLLMEmbeddingProvider(api_key="sk-test", model="text-embedding-3-small")
    mock = AsyncMock(return_value=response([0.1, 0.2]))

    with patch("mnemo.memory.embeddings.aembedding", mock):
        vector = await provider.embed("hello")

    assert vector == [0.1, 0.2]
    mock.assert_awaited_once()
    kwargs = mock.await_args.kwargs
    assert kwargs["model"] == "text-embedding-3-small"
    assert kwargs["input"] == ["hello"]
    assert kwargs["api_key"] == "sk-test"
    assert "api_base" not in kwargs


async def test_embed_batch_restores_input_order():
    provider = LiteLLMEmbeddingProvider(api_key="sk-test")
    mock = AsyncMock(return_value=response([1.0], [2.0], [3.0], order=[2, 0, 1]))

    with patch("mnemo.memory.embeddings.aembedding", mock):
        vectors = await provider.embed_batch(["a", "b", "c"])

    assert vectors == [[1.0], [2.0], [3.0]]


async def test_embed_batch_empty_makes_no_call():
    provider = LiteLLMEmbeddingProvider(api_key="sk-test")
    mock = AsyncMock()
    with patch("mnemo.memory.embeddings.aembedding", mock):
        assert await provider.embed_batch([]) == []
    mock.assert_not_awaited()


async def test_api_base_is_forwarded():
    provider = LiteLLMEmbeddingProvider(api_key="sk-test", api_base="http://localhost:8080/v1")
    mock = AsyncMock(return_value=response([0.5]))
    with patch("mnemo.memory.embeddings.aembedding", mock):
        await provider.embed("x")
    assert mock.await_args.kwargs["api_base"] == "http://localhost:8080/v1"


async def test_unavailable_provider_raises_without_calling():
    provider = LiteLLMEmbeddingProvider(api_key="")
    assert provider.is_available() is False

    mock = AsyncMock()
    with patch("mnemo.memory.embeddings.aembedding", mock):
        with pytest.raises(ProviderError):
            await provider.embed("hello")
    mock.assert_not_awaited()


async def test_upstream_failure_becomes_provider_error():
    provider = LiteLLMEmbeddingProvider(api_key="sk-test")
    mock = AsyncMock(side_effect=RuntimeError("rate limited"))

    with patch("mnemo.memory.embeddings.aembedding", mock):
        with pytest.raises(ProviderError, match="rate limited"):
            await provider.embed("hello")


async def test_short_response_is_rejected():
    provider = LiteLLMEmbeddingProvider(api_key="sk-test")
    mock = AsyncMock(return_value=response([1.0]))

    with patch("mnemo.memory.embeddings.aembedding", mock):
        with pytest.raises(ProviderError):
            await provider.embed_batch(["a", "b"])


async def test_null_provider():
    provider = NullEmbeddingProvider()
    assert provider.is_available() is False
    with pytest.raises(ProviderError):
        await provider.embed("x")


def test_create_provider_without_key():
    settings = Settings(openai_api_key="", _env_file=None)
    assert isinstance(create_provider(settings), NullEmbeddingProvider)


def test_create_provider_with_key():
    settings = Settings(
        openai_api_key="sk-test",
        embedding_model="custom-embed",
        _env_file=None,
    )
    provider = create_provider(settings)
    assert isinstance(provider, LiteLLMEmbeddingProvider)
    assert provider.get_model() == "custom-embed"


@pytest.mark.integration
async def test_real_embedding_roundtrip():
    """Calls the configured embedding endpoint; skipped without a key."""
    provider = create_provider(Settings())
    if not provider.is_available():
        pytest.skip("No embedding API key configured")

    first, second = await provider.embed_batch(["dark mode", "light theme"])
    assert len(first) == len(second) > 0
