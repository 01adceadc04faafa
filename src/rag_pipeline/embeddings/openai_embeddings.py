"""
Embeddings Module - Single Responsibility: Generate text embeddings.

It has ONE job: convert text to vector embeddings.

SOLID PRINCIPLE: Single Responsibility
- This module ONLY handles embedding generation
- No index logic, no document handling
- Easy to swap for different embedding providers

A failed batch raises EmbeddingFailed as a whole. There is no partial
recovery and no retry here; the caller decides whether to resend the batch.
"""

import hashlib
import logging
import os
import re

import numpy as np
from openai import AsyncOpenAI, OpenAIError

from rag_pipeline.core.errors import EmbeddingFailed
from rag_pipeline.core.protocols import EmbeddingProvider

logger = logging.getLogger(__name__)


class OpenAIEmbeddings:
    """
    OpenAI-based embedding provider.

    Uses text-embedding-3-small by default (1536 dimensions).
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: str | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.model = model
        self._client = client or AsyncOpenAI(api_key=api_key or os.environ.get("OPENAI_API_KEY"))

    @property
    def dimensions(self) -> int:
        """Return embedding dimensions for the model."""
        model_dims = {
            "text-embedding-3-small": 1536,
            "text-embedding-3-large": 3072,
            "text-embedding-ada-002": 1536,
        }
        return model_dims.get(self.model, 1536)

    async def embed(self, text: str) -> np.ndarray:
        """Generate embedding for a single text."""
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate embeddings for multiple texts in one request."""
        if not texts:
            return []

        logger.debug("Embedding batch of %d texts with %s", len(texts), self.model)
        try:
            response = await self._client.embeddings.create(
                input=texts,
                model=self.model
            )
        except OpenAIError as e:
            logger.error("Embedding request failed: %s", e)
            raise EmbeddingFailed(
                f"Embedding request failed: {e}",
                batch_size=len(texts),
                details={"model": self.model},
            ) from e

        if len(response.data) != len(texts):
            raise EmbeddingFailed(
                f"Expected {len(texts)} embeddings, got {len(response.data)}",
                batch_size=len(texts),
                details={"model": self.model},
            )

        # The API may return items out of order; index restores input order
        items = sorted(response.data, key=lambda item: item.index)
        return [
            np.array(item.embedding, dtype=np.float32)
            for item in items
        ]


class MockEmbeddings:
    """
    Mock embedding provider for testing without API calls.

    Generates deterministic bag-of-words vectors by hashing each token into
    a bucket, so texts sharing words get a positive cosine similarity.
    NOT for production use - only for testing/development.
    """

    _TOKEN = re.compile(r"\w+")

    def __init__(self, dimensions: int = 1536):
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _vector(self, text: str) -> np.ndarray:
        vector = np.zeros(self._dimensions, dtype=np.float32)
        for token in self._TOKEN.findall(text.lower()):
            h = hashlib.sha256(token.encode()).digest()
            vector[int.from_bytes(h[:8], "big") % self._dimensions] += 1.0
        return vector

    async def embed(self, text: str) -> np.ndarray:
        """Generate deterministic pseudo-embedding from token hashes."""
        return self._vector(text)

    async def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate embeddings for multiple texts."""
        return [self._vector(text) for text in texts]


def get_embedding_provider(
    use_mock: bool | None = None,
    model: str = "text-embedding-3-small",
) -> EmbeddingProvider:
    """
    Factory function to get the appropriate embedding provider.

    Args:
        use_mock: If True, return MockEmbeddings (for testing). When None,
            the USE_MOCK_EMBEDDINGS environment variable decides.
        model: OpenAI embedding model name
    """
    if use_mock is None:
        use_mock = os.environ.get("USE_MOCK_EMBEDDINGS", "false").lower() == "true"
    if use_mock:
        return MockEmbeddings()
    return OpenAIEmbeddings(model=model)
