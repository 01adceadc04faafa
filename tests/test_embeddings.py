"""
Unit Tests for Embedding Providers

OpenAIEmbeddings is tested against a mocked AsyncOpenAI client; no API
calls are made. MockEmbeddings is tested for the lexical-similarity
behavior the rest of the suite relies on.
"""

import numpy as np
import pytest
from unittest.mock import AsyncMock, MagicMock

import openai

from rag_pipeline.core.errors import EmbeddingFailed
from rag_pipeline.embeddings import MockEmbeddings, OpenAIEmbeddings, get_embedding_provider


# ---------------------------------------------------------------------------
# FIXTURES
# ---------------------------------------------------------------------------


def embedding_response(vectors, order=None):
    order = order or range(len(vectors))
    response = MagicMock()
    response.data = [MagicMock(index=i, embedding=vectors[i]) for i in order]
    return response


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.embeddings.create = AsyncMock()
    return client


def cosine(a, b):
    return float(np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b)))


# ---------------------------------------------------------------------------
# OPENAI
# ---------------------------------------------------------------------------


class TestOpenAIEmbeddings:
    @pytest.mark.asyncio
    async def test_embed_batch_single_request(self, mock_client):
        mock_client.embeddings.create.return_value = embedding_response([[1.0, 0.0], [0.0, 1.0]])
        embeddings = OpenAIEmbeddings(client=mock_client)

        vectors = await embeddings.embed_batch(["a", "b"])

        mock_client.embeddings.create.assert_awaited_once_with(
            input=["a", "b"], model="text-embedding-3-small"
        )
        assert len(vectors) == 2
        assert vectors[0].dtype == np.float32

    @pytest.mark.asyncio
    async def test_results_reordered_by_index(self, mock_client):
        mock_client.embeddings.create.return_value = embedding_response(
            [[1.0, 0.0], [0.0, 1.0]], order=[1, 0]
        )
        vectors = await OpenAIEmbeddings(client=mock_client).embed_batch(["a", "b"])

        np.testing.assert_array_equal(vectors[0], [1.0, 0.0])
        np.testing.assert_array_equal(vectors[1], [0.0, 1.0])

    @pytest.mark.asyncio
    async def test_empty_batch_skips_request(self, mock_client):
        assert await OpenAIEmbeddings(client=mock_client).embed_batch([]) == []
        mock_client.embeddings.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_api_error_raises_embedding_failed(self, mock_client):
        mock_client.embeddings.create.side_effect = openai.OpenAIError("rate limited")

        with pytest.raises(EmbeddingFailed) as exc_info:
            await OpenAIEmbeddings(client=mock_client).embed_batch(["a", "b", "c"])

        assert exc_info.value.details["batch_size"] == 3
        assert isinstance(exc_info.value.__cause__, openai.OpenAIError)

    @pytest.mark.asyncio
    async def test_length_mismatch_raises_embedding_failed(self, mock_client):
        mock_client.embeddings.create.return_value = embedding_response([[1.0, 0.0]])

        with pytest.raises(EmbeddingFailed):
            await OpenAIEmbeddings(client=mock_client).embed_batch(["a", "b"])

    @pytest.mark.asyncio
    async def test_embed_single(self, mock_client):
        mock_client.embeddings.create.return_value = embedding_response([[0.5, 0.5]])
        vector = await OpenAIEmbeddings(client=mock_client).embed("hello")

        np.testing.assert_array_equal(vector, [0.5, 0.5])

    def test_dimensions_by_model(self, mock_client):
        assert OpenAIEmbeddings("text-embedding-3-large", client=mock_client).dimensions == 3072


# ---------------------------------------------------------------------------
# MOCK
# ---------------------------------------------------------------------------


class TestMockEmbeddings:
    @pytest.mark.asyncio
    async def test_deterministic(self):
        embeddings = MockEmbeddings(dimensions=64)
        a = await embeddings.embed("the same text")
        b = await embeddings.embed("the same text")

        np.testing.assert_array_equal(a, b)
        assert a.shape == (64,)

    @pytest.mark.asyncio
    async def test_shared_words_are_similar(self):
        embeddings = MockEmbeddings()
        dog, cat, query = await embeddings.embed_batch(
            ["Dogs are loyal pets.", "Cats are independent.", "loyal"]
        )

        assert cosine(query, dog) > cosine(query, cat)

    @pytest.mark.asyncio
    async def test_batch_preserves_order(self):
        embeddings = MockEmbeddings(dimensions=32)
        texts = ["alpha", "beta", "gamma"]
        batch = await embeddings.embed_batch(texts)

        for text, vector in zip(texts, batch):
            np.testing.assert_array_equal(vector, await embeddings.embed(text))


class TestFactory:
    def test_use_mock(self):
        assert isinstance(get_embedding_provider(use_mock=True), MockEmbeddings)

    def test_env_switch(self, monkeypatch):
        monkeypatch.setenv("USE_MOCK_EMBEDDINGS", "true")
        assert isinstance(get_embedding_provider(), MockEmbeddings)

    def test_real_provider(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        provider = get_embedding_provider(use_mock=False, model="text-embedding-3-large")

        assert isinstance(provider, OpenAIEmbeddings)
        assert provider.model == "text-embedding-3-large"
