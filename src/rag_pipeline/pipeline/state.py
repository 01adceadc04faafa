"""
Pipeline state definitions - lifecycle status, per-query state, response.

PipelineState is the data flowing through the two query stages: retrieve
writes `context`, generate reads it and writes `answer`. One instance per
query, discarded afterwards.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, TypedDict

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from rag_pipeline.retrieval.document import Chunk


class PipelineStatus(str, Enum):
    """Lifecycle of a RAGPipeline. FAILED is terminal."""

    UNINITIALIZED = "uninitialized"
    INDEXING = "indexing"
    READY = "ready"
    FAILED = "failed"


class PipelineState(TypedDict):
    """
    State that flows through the query stages.

    Input fields are set at invocation time.
    Intermediate and output fields are populated by stages.
    """

    # INPUT
    question: str

    # INTERMEDIATE (retrieve stage)
    context: list[Chunk]

    # OUTPUT (generate stage)
    answer: str


def create_initial_state(question: str) -> PipelineState:
    """Create an empty state for one query."""
    return PipelineState(question=question, context=[], answer="")


class QueryMetadata(BaseModel):
    """Timing and size of one answered question."""

    retrieved_docs: int = Field(ge=0)
    processing_time_ms: int = Field(ge=0)


class QueryResponse(BaseModel):
    """Answer, the context it was generated from, and run metadata."""

    answer: str
    context: list[str]
    metadata: QueryMetadata
