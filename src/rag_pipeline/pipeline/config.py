"""
Pipeline configuration - one immutable struct passed to the orchestrator.

Model names, temperatures, chunking, store and retrieval settings all live
here; nothing reads ambient configuration after construction.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from rag_pipeline.retrieval.retriever import RetrievalOptions
from rag_pipeline.retrieval.store import MemoryStoreConfig, RemoteStoreConfig


def _optional_float(value: str | None) -> float | None:
    return float(value) if value else None


@dataclass(frozen=True)
class ChunkConfig:
    """Character-based chunking settings."""

    chunk_size: int = 1000
    chunk_overlap: int = 200


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration for a RAGPipeline.

    Environment Variables (from_env):
        RAG_LLM_MODEL: Chat model (default: gpt-4o-mini)
        RAG_LLM_TEMPERATURE: Sampling temperature (default: 0.0)
        RAG_EMBEDDING_MODEL: Embedding model (default: text-embedding-3-small)
        RAG_CHUNK_SIZE / RAG_CHUNK_OVERLAP: Chunking (default: 1000 / 200)
        RAG_VECTOR_STORE: "memory" or "remote" (default: memory)
        RAG_INDEX_NAME: Remote table name (default: rag_chunks)
        RAG_MAX_CONCURRENCY: Remote insert batch size (default: 5)
        DATABASE_URL: Remote connection string
        RAG_TOP_K: Chunks retrieved per question (default: 4)
        RAG_STRATEGY: similarity | mmr | threshold (default: similarity)
        RAG_SCORE_THRESHOLD: Minimum similarity for the threshold strategy
    """

    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.0
    embedding_model: str = "text-embedding-3-small"
    chunking: ChunkConfig = field(default_factory=ChunkConfig)
    vector_store: MemoryStoreConfig | RemoteStoreConfig = field(default_factory=MemoryStoreConfig)
    retrieval: RetrievalOptions = field(default_factory=RetrievalOptions)

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Load config from environment variables."""
        if os.environ.get("RAG_VECTOR_STORE", "memory").lower() == "remote":
            vector_store = RemoteStoreConfig(
                index_name=os.environ.get("RAG_INDEX_NAME", "rag_chunks"),
                max_concurrency=int(os.environ.get("RAG_MAX_CONCURRENCY", "5")),
                connection_string=os.environ.get(
                    "DATABASE_URL", "postgresql://localhost/rag_pipeline"
                ),
            )
        else:
            vector_store = MemoryStoreConfig()

        return cls(
            llm_model=os.environ.get("RAG_LLM_MODEL", "gpt-4o-mini"),
            llm_temperature=float(os.environ.get("RAG_LLM_TEMPERATURE", "0.0")),
            embedding_model=os.environ.get("RAG_EMBEDDING_MODEL", "text-embedding-3-small"),
            chunking=ChunkConfig(
                chunk_size=int(os.environ.get("RAG_CHUNK_SIZE", "1000")),
                chunk_overlap=int(os.environ.get("RAG_CHUNK_OVERLAP", "200")),
            ),
            vector_store=vector_store,
            retrieval=RetrievalOptions(
                k=int(os.environ.get("RAG_TOP_K", "4")),
                strategy=os.environ.get("RAG_STRATEGY", "similarity"),
                score_threshold=_optional_float(os.environ.get("RAG_SCORE_THRESHOLD")),
            ),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for reporting."""
        return {
            "llm_model": self.llm_model,
            "llm_temperature": self.llm_temperature,
            "embedding_model": self.embedding_model,
            "chunking": {
                "chunk_size": self.chunking.chunk_size,
                "chunk_overlap": self.chunking.chunk_overlap,
            },
            "vector_store": self.vector_store.model_dump(),
            "retrieval": self.retrieval.model_dump(),
        }
