"""
Vector store implementations following the gold standard pattern.

Pattern: Protocol -> Production impl -> Test double -> Factory

This module contains:
1. VectorStoreConfig - tagged union (memory | remote)
2. InMemoryVectorStore - exact cosine similarity, linear scan
3. PgVectorStore - PostgreSQL with pgvector (remote index)
4. get_vector_store() - Factory function

Both backends share the same external behavior:
- add() embeds a batch, inserts records, never deduplicates
- search before the first successful add() raises IndexNotReady
- scores are similarities, higher is better; ties keep insertion order
- fewer than k records -> fewer than k results
"""

from __future__ import annotations

import logging
import uuid
from typing import Annotated, Literal, Sequence, Union

import numpy as np
import psycopg
from pgvector.psycopg import register_vector_async
from psycopg.types.json import Jsonb
from pydantic import BaseModel, ConfigDict, Field

from rag_pipeline.core import EmbeddingProvider, RetrievalResult
from rag_pipeline.core.errors import EmbeddingFailed, IndexNotReady
from rag_pipeline.retrieval.document import Chunk, IndexedRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------------------------


class MemoryStoreConfig(BaseModel):
    """In-process index; lives and dies with the pipeline."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["memory"] = "memory"


class RemoteStoreConfig(BaseModel):
    """Remote pgvector index. `index_name` is the table name."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["remote"] = "remote"
    index_name: str = Field(pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    max_concurrency: int = Field(default=5, ge=1)
    connection_string: str = "postgresql://localhost/rag_pipeline"
    embedding_dim: int = 1536


VectorStoreConfig = Annotated[
    Union[MemoryStoreConfig, RemoteStoreConfig],
    Field(discriminator="kind"),
]


def _validate_k(k: int) -> None:
    if k <= 0:
        raise ValueError(f"k must be a positive integer, got {k}")


# ---------------------------------------------------------------------------
# IN-MEMORY STORE
# ---------------------------------------------------------------------------


class InMemoryVectorStore:
    """
    In-memory vector store.

    Computes exact cosine similarity against every stored vector
    (O(n) per query). Records are kept in insertion order.
    """

    backend = "memory"

    def __init__(self, embeddings: EmbeddingProvider):
        """
        Initialize with injected embedding provider.

        Args:
            embeddings: Embedding provider for generating vectors
        """
        self._embeddings = embeddings
        self._records: list[IndexedRecord] = []
        self._dimension: int | None = None
        self._ready = False

    @property
    def count(self) -> int:
        return len(self._records)

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def add(self, chunks: Sequence[Chunk]) -> list[str]:
        """Embed chunks in one batch and append them. No deduplication."""
        chunks = list(chunks)
        vectors = await self._embeddings.embed_batch([c.content for c in chunks])
        if len(vectors) != len(chunks):
            raise EmbeddingFailed(
                f"Expected {len(chunks)} embeddings, got {len(vectors)}",
                batch_size=len(chunks),
            )

        # Validate the whole batch before inserting anything
        dimension = self._dimension
        for vector in vectors:
            if dimension is None:
                dimension = len(vector)
            elif len(vector) != dimension:
                raise EmbeddingFailed(
                    f"Embedding dimension mismatch: expected {dimension}, got {len(vector)}",
                    batch_size=len(chunks),
                )

        records = [
            IndexedRecord(id=uuid.uuid4().hex, vector=np.asarray(v, dtype=np.float32), chunk=c)
            for c, v in zip(chunks, vectors)
        ]
        self._records.extend(records)
        self._dimension = dimension
        self._ready = True

        logger.debug("Added %d records (total %d)", len(records), self.count)
        return [r.id for r in records]

    def _score(self, vector: np.ndarray) -> np.ndarray:
        """Cosine similarity of `vector` against every record, in insertion order."""
        query = np.asarray(vector, dtype=np.float32)
        if self._dimension is not None and len(query) != self._dimension:
            raise ValueError(
                f"Query dimension mismatch: expected {self._dimension}, got {len(query)}"
            )

        matrix = np.vstack([r.vector for r in self._records])
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        return np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

    def _top_k(self, vector: np.ndarray, k: int, with_vectors: bool) -> list[RetrievalResult]:
        _validate_k(k)
        if not self._ready:
            raise IndexNotReady(self.backend)
        if not self._records:
            return []

        scores = self._score(vector)
        # Stable sort keeps earlier-inserted records first on ties
        order = np.argsort(-scores, kind="stable")[:k]
        return [
            RetrievalResult(
                chunk=self._records[i].chunk,
                score=float(scores[i]),
                vector=self._records[i].vector if with_vectors else None,
            )
            for i in order
        ]

    async def search_by_vector(self, vector: np.ndarray, k: int = 4) -> list[RetrievalResult]:
        """Return the k most similar records."""
        return self._top_k(vector, k, with_vectors=False)

    async def search_by_text(self, query: str, k: int = 4) -> list[RetrievalResult]:
        """Embed the query, then search by vector."""
        if not self._ready:
            raise IndexNotReady(self.backend)
        vector = await self._embeddings.embed(query)
        return self._top_k(vector, k, with_vectors=False)

    async def search_with_vectors(self, query: str, k: int = 4) -> list[RetrievalResult]:
        """Search by text; results carry stored vectors (for MMR)."""
        if not self._ready:
            raise IndexNotReady(self.backend)
        vector = await self._embeddings.embed(query)
        return self._top_k(vector, k, with_vectors=True)

    async def clear(self) -> None:
        """Drop every record and return to the not-ready state."""
        self._records = []
        self._dimension = None
        self._ready = False

    async def close(self) -> None:
        """Nothing to release for an in-process index."""


# ---------------------------------------------------------------------------
# PGVECTOR STORE (Remote)
# ---------------------------------------------------------------------------


class PgVectorStore:
    """
    PostgreSQL vector store using pgvector.

    Dependencies are INJECTED, not created internally.
    This enables testing with mock embeddings.

    The table holds a BIGSERIAL `seq` column so ties in distance are
    broken by insertion order, matching the in-memory store. Cosine
    distance from `<=>` is converted to similarity (1 - distance).
    """

    backend = "remote"

    def __init__(
        self,
        config: RemoteStoreConfig,
        embeddings: EmbeddingProvider,
    ):
        """
        Initialize with injected dependencies.

        Args:
            config: Remote store configuration
            embeddings: Embedding provider (injected, not created here)
        """
        self.config = config
        self._embeddings = embeddings
        self._conn = None
        self._ids: list[str] = []
        self._ready = False

    @property
    def table(self) -> str:
        return self.config.index_name

    @property
    def count(self) -> int:
        """Records added through this instance (explicit counter)."""
        return len(self._ids)

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def connect(self) -> None:
        """Establish database connection and make sure the schema exists."""
        self._conn = await psycopg.AsyncConnection.connect(
            self.config.connection_string, autocommit=True
        )
        await self._conn.execute("CREATE EXTENSION IF NOT EXISTS vector")
        await register_vector_async(self._conn)
        await self.create_schema()
        logger.info("Connected to remote index %s", self.table)

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def _ensure_connected(self) -> None:
        if not self._conn:
            await self.connect()

    async def create_schema(self) -> None:
        """Create the records table and its HNSW index."""
        await self._conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                id TEXT PRIMARY KEY,
                seq BIGSERIAL,
                content TEXT NOT NULL,
                metadata JSONB NOT NULL DEFAULT '{{}}',
                embedding vector({self.config.embedding_dim})
            )
        """
        )

        await self._conn.execute(
            f"""
            CREATE INDEX IF NOT EXISTS {self.table}_embedding_idx
            ON {self.table}
            USING hnsw (embedding vector_cosine_ops)
            WITH (m = 16, ef_construction = 64)
        """
        )

    async def add(self, chunks: Sequence[Chunk]) -> list[str]:
        """Embed chunks in one batch and insert them in groups of max_concurrency rows."""
        chunks = list(chunks)
        vectors = await self._embeddings.embed_batch([c.content for c in chunks])
        if len(vectors) != len(chunks):
            raise EmbeddingFailed(
                f"Expected {len(chunks)} embeddings, got {len(vectors)}",
                batch_size=len(chunks),
            )
        for vector in vectors:
            if len(vector) != self.config.embedding_dim:
                raise EmbeddingFailed(
                    f"Embedding dimension mismatch: expected {self.config.embedding_dim}, "
                    f"got {len(vector)}",
                    batch_size=len(chunks),
                )

        await self._ensure_connected()

        rows = [
            (uuid.uuid4().hex, c.content, Jsonb(dict(c.metadata)), np.asarray(v, dtype=np.float32))
            for c, v in zip(chunks, vectors)
        ]
        step = self.config.max_concurrency
        # All batches commit together or not at all
        async with self._conn.transaction():
            async with self._conn.cursor() as cur:
                for i in range(0, len(rows), step):
                    await cur.executemany(
                        f"""
                        INSERT INTO {self.table} (id, content, metadata, embedding)
                        VALUES (%s, %s, %s, %s)
                        """,
                        rows[i : i + step],
                    )

        self._ids.extend(row[0] for row in rows)
        self._ready = True
        logger.debug("Inserted %d records into %s", len(rows), self.table)
        return [row[0] for row in rows]

    async def _query(self, vector: np.ndarray, k: int, with_vectors: bool) -> list[RetrievalResult]:
        _validate_k(k)
        if not self._ready:
            raise IndexNotReady(self.backend)
        await self._ensure_connected()

        cursor = await self._conn.execute(
            f"""
            SELECT content, metadata, embedding,
                   embedding <=> %s AS distance
            FROM {self.table}
            ORDER BY distance, seq
            LIMIT %s
            """,
            (np.asarray(vector, dtype=np.float32), k),
        )
        rows = await cursor.fetchall()

        return [
            RetrievalResult(
                chunk=Chunk(content=row[0], metadata=row[1] or {}),
                score=1 - float(row[3]),  # Convert distance to similarity
                vector=np.asarray(row[2], dtype=np.float32) if with_vectors else None,
            )
            for row in rows
        ]

    async def search_by_vector(self, vector: np.ndarray, k: int = 4) -> list[RetrievalResult]:
        return await self._query(vector, k, with_vectors=False)

    async def search_by_text(self, query: str, k: int = 4) -> list[RetrievalResult]:
        if not self._ready:
            raise IndexNotReady(self.backend)
        vector = await self._embeddings.embed(query)
        return await self._query(vector, k, with_vectors=False)

    async def search_with_vectors(self, query: str, k: int = 4) -> list[RetrievalResult]:
        if not self._ready:
            raise IndexNotReady(self.backend)
        vector = await self._embeddings.embed(query)
        return await self._query(vector, k, with_vectors=True)

    async def clear(self) -> None:
        """
        Delete the rows this instance inserted and return to the not-ready state.

        Rows written by other instances sharing the table are left alone.
        """
        if self._conn and self._ids:
            await self._conn.execute(
                f"DELETE FROM {self.table} WHERE id = ANY(%s)",
                (list(self._ids),),
            )
        self._ids = []
        self._ready = False


# ---------------------------------------------------------------------------
# FACTORY FUNCTION
# ---------------------------------------------------------------------------


def get_vector_store(
    config: MemoryStoreConfig | RemoteStoreConfig | None = None,
    embeddings: EmbeddingProvider | None = None,
) -> InMemoryVectorStore | PgVectorStore:
    """
    Factory function to get the appropriate vector store.

    Args:
        config: Store configuration (in-memory if not provided)
        embeddings: Embedding provider (will create one if not provided)

    Returns:
        VectorStore implementation
    """
    if embeddings is None:
        from rag_pipeline.embeddings import get_embedding_provider

        embeddings = get_embedding_provider()

    if isinstance(config, RemoteStoreConfig):
        return PgVectorStore(config, embeddings)
    return InMemoryVectorStore(embeddings)
