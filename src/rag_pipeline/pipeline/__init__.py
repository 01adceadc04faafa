"""
Pipeline module - indexing lifecycle and the retrieve -> generate query flow.

ARCHITECTURE:
-------------
1. PipelineConfig holds every setting (models, chunking, store, retrieval)
2. Stages are factories returning async `state -> update` functions
3. RAGPipeline owns the lifecycle state machine and composes the stages
"""

from rag_pipeline.pipeline.config import ChunkConfig, PipelineConfig
from rag_pipeline.pipeline.state import (
    PipelineStatus,
    PipelineState,
    QueryMetadata,
    QueryResponse,
    create_initial_state,
)
from rag_pipeline.pipeline.stages import (
    RAG_PROMPT,
    build_context_text,
    create_retrieve_stage,
    create_generate_stage,
)
from rag_pipeline.pipeline.orchestrator import RAGPipeline

__all__ = [
    "ChunkConfig",
    "PipelineConfig",
    "PipelineStatus",
    "PipelineState",
    "QueryMetadata",
    "QueryResponse",
    "create_initial_state",
    "RAG_PROMPT",
    "build_context_text",
    "create_retrieve_stage",
    "create_generate_stage",
    "RAGPipeline",
]
