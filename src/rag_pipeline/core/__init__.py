"""
Core module - shared protocols, types and errors for the entire system.

This module provides the foundational contracts that enable:
- Dependency injection throughout the codebase
- Easy testing with mock implementations
- Clear separation of concerns

USAGE:
------
from rag_pipeline.core import VectorStore, EmbeddingProvider

class MyVectorStore:
    '''Implements VectorStore protocol.'''
    ...
"""

from rag_pipeline.core.errors import (
    RAGPipelineError,
    SourceUnavailable,
    NotFound,
    UnsupportedFormat,
    InvalidChunkConfig,
    EmbeddingFailed,
    IndexNotReady,
    UnknownStrategy,
    MissingScoreThreshold,
    PipelineNotReady,
    GenerationFailed,
)
from rag_pipeline.core.protocols import (
    # Protocols
    EmbeddingProvider,
    VectorStore,
    DocumentLoader,
    ChatModel,
    # Data classes
    RetrievalResult,
)

__all__ = [
    # Errors
    "RAGPipelineError",
    "SourceUnavailable",
    "NotFound",
    "UnsupportedFormat",
    "InvalidChunkConfig",
    "EmbeddingFailed",
    "IndexNotReady",
    "UnknownStrategy",
    "MissingScoreThreshold",
    "PipelineNotReady",
    "GenerationFailed",
    # Protocols
    "EmbeddingProvider",
    "VectorStore",
    "DocumentLoader",
    "ChatModel",
    # Data classes
    "RetrievalResult",
]
