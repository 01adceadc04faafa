"""
Core protocols defining contracts for the entire system.

All infrastructure components implement these protocols,
enabling dependency injection and easy testing.

PATTERN: This follows the same structure as embeddings/openai_embeddings.py
- Protocol defines the contract
- Multiple implementations possible
- Factory functions for instantiation
- Test doubles for fast unit tests
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, Sequence, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from rag_pipeline.retrieval.document import Chunk, Document


# ---------------------------------------------------------------------------
# EMBEDDING PROVIDER PROTOCOL
# ---------------------------------------------------------------------------
# Re-exported from embeddings module for consistency

@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Contract for embedding generation.

    Implementations:
    - OpenAIEmbeddings (production)
    - MockEmbeddings (testing)
    """

    async def embed(self, text: str) -> np.ndarray:
        """Generate embedding for a single text."""
        ...

    async def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate embeddings for multiple texts, same length and order."""
        ...


# ---------------------------------------------------------------------------
# VECTOR STORE PROTOCOL
# ---------------------------------------------------------------------------

@dataclass
class RetrievalResult:
    """A retrieved chunk with its similarity score (higher is better)."""
    chunk: Chunk
    score: float
    vector: np.ndarray | None = None

    @property
    def content(self) -> str:
        return self.chunk.content


@runtime_checkable
class VectorStore(Protocol):
    """
    Contract for vector similarity search.

    Implementations:
    - InMemoryVectorStore (exact linear scan)
    - PgVectorStore (remote PostgreSQL index)
    """

    @property
    def count(self) -> int:
        """Number of records added through this store."""
        ...

    async def add(self, chunks: Sequence[Chunk]) -> list[str]:
        """Embed and insert chunks. Returns the assigned record ids."""
        ...

    async def search_by_text(self, query: str, k: int = 4) -> list[RetrievalResult]:
        """Embed the query and return the top k records."""
        ...

    async def search_by_vector(self, vector: np.ndarray, k: int = 4) -> list[RetrievalResult]:
        """Return the top k records for a query vector."""
        ...

    async def search_with_vectors(self, query: str, k: int = 4) -> list[RetrievalResult]:
        """Like search_by_text, but results carry their stored vectors."""
        ...

    async def clear(self) -> None:
        """Drop the records this store added."""
        ...

    async def close(self) -> None:
        """Release connections, if any."""
        ...


# ---------------------------------------------------------------------------
# LOADER PROTOCOL
# ---------------------------------------------------------------------------

@runtime_checkable
class DocumentLoader(Protocol):
    """
    Contract for turning a source into Documents.

    Implementations:
    - WebLoader, TextFileLoader, PDFLoader, TextLoader
    """

    async def load(self) -> list[Document]:
        """Load the source."""
        ...


# ---------------------------------------------------------------------------
# CHAT MODEL PROTOCOL
# ---------------------------------------------------------------------------

@runtime_checkable
class ChatModel(Protocol):
    """
    The slice of a LangChain chat model the pipeline uses.

    ChatOpenAI satisfies this; tests pass an AsyncMock.
    """

    async def ainvoke(self, input: Any, **kwargs: Any) -> Any:
        """Invoke the model on prompt messages."""
        ...
