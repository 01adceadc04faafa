"""
Retrieval module - vector similarity search for RAG.

This module provides:
- Document / Chunk / IndexedRecord: the data model
- VectorStoreConfig: tagged union of store configurations
- InMemoryVectorStore: exact linear-scan store
- PgVectorStore: remote PostgreSQL store
- get_vector_store(): Factory function
- Retriever: similarity, MMR and threshold strategies

ARCHITECTURE:
-------------
1. Protocol defines the contract (in core.protocols)
2. Multiple implementations (PgVectorStore, InMemoryVectorStore)
3. Factory function for instantiation
4. Retriever composes a store with a selection strategy
"""

from rag_pipeline.retrieval.document import Document, Chunk, IndexedRecord

from rag_pipeline.retrieval.store import (
    VectorStoreConfig,
    MemoryStoreConfig,
    RemoteStoreConfig,
    PgVectorStore,
    InMemoryVectorStore,
    get_vector_store,
)

from rag_pipeline.retrieval.retriever import (
    RetrievalOptions,
    Retriever,
    BatchRetrievalResult,
    maximal_marginal_relevance,
)

__all__ = [
    # Model
    "Document",
    "Chunk",
    "IndexedRecord",
    # Config
    "VectorStoreConfig",
    "MemoryStoreConfig",
    "RemoteStoreConfig",
    # Implementations
    "PgVectorStore",
    "InMemoryVectorStore",
    # Factory
    "get_vector_store",
    # Retriever
    "RetrievalOptions",
    "Retriever",
    "BatchRetrievalResult",
    "maximal_marginal_relevance",
]
