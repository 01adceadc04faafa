"""
Retriever - selects k chunks from a VectorStore with a named strategy.

Strategies:
- similarity: top k by score, verbatim
- mmr:        maximal marginal relevance over an oversampled pool
- threshold:  similarity results scoring at least a cutoff

Batched retrieval runs each query independently and concurrently; one
query's failure is recorded against that query only.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator

from rag_pipeline.core.errors import MissingScoreThreshold, UnknownStrategy

if TYPE_CHECKING:
    from rag_pipeline.core import RetrievalResult, VectorStore
    from rag_pipeline.retrieval.document import Chunk

logger = logging.getLogger(__name__)

STRATEGIES = ("similarity", "mmr", "threshold")


# ---------------------------------------------------------------------------
# OPTIONS
# ---------------------------------------------------------------------------


class RetrievalOptions(BaseModel):
    """
    Per-query retrieval settings.

    `strategy` is a plain string so that an unknown name surfaces as
    UnknownStrategy for the query that used it.
    """

    model_config = ConfigDict(frozen=True)

    k: int = Field(default=4, ge=1)
    strategy: str = "similarity"
    lambda_mult: float = Field(default=0.5, ge=0.0, le=1.0)
    fetch_k: int | None = Field(default=None, ge=1)
    score_threshold: float | None = None

    @model_validator(mode="after")
    def _fetch_k_covers_k(self) -> "RetrievalOptions":
        if self.fetch_k is not None and self.fetch_k < self.k:
            raise ValueError(f"fetch_k ({self.fetch_k}) must be >= k ({self.k})")
        return self

    @property
    def candidate_pool(self) -> int:
        """Number of candidates fetched for MMR (defaults to 2k)."""
        return self.fetch_k if self.fetch_k is not None else self.k * 2


# ---------------------------------------------------------------------------
# MMR
# ---------------------------------------------------------------------------


def _cosine_matrix(vectors: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(vectors, axis=1)
    norms[norms == 0] = 1.0
    unit = vectors / norms[:, None]
    return unit @ unit.T


def maximal_marginal_relevance(
    candidates: list[RetrievalResult],
    k: int,
    lambda_mult: float,
) -> list[RetrievalResult]:
    """
    Greedily pick k candidates maximizing
    lambda * relevance - (1 - lambda) * max_similarity_to_selected.

    Candidates must arrive in rank order and carry vectors. Ties go to the
    earlier-ranked candidate, so lambda=1 reproduces the similarity order.
    """
    if not candidates:
        return []

    relevance = np.array([c.score for c in candidates], dtype=np.float64)
    pairwise = _cosine_matrix(np.vstack([c.vector for c in candidates]).astype(np.float64))

    selected: list[int] = []
    remaining = list(range(len(candidates)))
    while remaining and len(selected) < k:
        best_idx = remaining[0]
        best_value = -np.inf
        for idx in remaining:
            redundancy = max(pairwise[idx, s] for s in selected) if selected else 0.0
            value = lambda_mult * relevance[idx] - (1 - lambda_mult) * redundancy
            if value > best_value:
                best_idx, best_value = idx, value
        selected.append(best_idx)
        remaining.remove(best_idx)

    return [candidates[i] for i in selected]


# ---------------------------------------------------------------------------
# RETRIEVER
# ---------------------------------------------------------------------------


@dataclass
class BatchRetrievalResult:
    """
    Outcomes of batch_retrieve plus run metadata.

    results and errors are keyed by the query's position in `queries`, so
    repeated query strings each keep their own outcome.
    """
    queries: list[str] = field(default_factory=list)
    results: dict[int, list[Chunk]] = field(default_factory=dict)
    errors: dict[int, Exception] = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)


class Retriever:
    """Wraps a VectorStore with a selection strategy."""

    def __init__(self, store: VectorStore, options: RetrievalOptions | None = None):
        self.store = store
        self.options = options or RetrievalOptions()

    async def retrieve_with_scores(
        self,
        query: str,
        options: RetrievalOptions | None = None,
    ) -> list[RetrievalResult]:
        """Retrieve scored results for one query."""
        opts = options or self.options

        if opts.strategy == "similarity":
            results = await self.store.search_by_text(query, opts.k)

        elif opts.strategy == "mmr":
            pool = await self.store.search_with_vectors(query, opts.candidate_pool)
            results = maximal_marginal_relevance(pool, opts.k, opts.lambda_mult)

        elif opts.strategy == "threshold":
            if opts.score_threshold is None:
                raise MissingScoreThreshold()
            results = [
                r for r in await self.store.search_by_text(query, opts.k)
                if r.score >= opts.score_threshold
            ]

        else:
            raise UnknownStrategy(opts.strategy)

        logger.debug(
            "Retrieved %d results with %s strategy (k=%d)",
            len(results),
            opts.strategy,
            opts.k,
        )
        return results

    async def retrieve(
        self,
        query: str,
        options: RetrievalOptions | None = None,
    ) -> list[Chunk]:
        """Retrieve chunks for one query."""
        return [r.chunk for r in await self.retrieve_with_scores(query, options)]

    async def batch_retrieve(
        self,
        queries: list[str],
        options: RetrievalOptions | None = None,
    ) -> BatchRetrievalResult:
        """
        Retrieve for many queries concurrently.

        Each query position maps either to its chunks (results) or to the
        exception it raised (errors); queries run in no guaranteed order.
        """
        opts = options or self.options
        start = time.perf_counter()

        outcomes = await asyncio.gather(
            *(self.retrieve(q, opts) for q in queries),
            return_exceptions=True,
        )

        batch = BatchRetrievalResult(queries=list(queries))
        for i, (query, outcome) in enumerate(zip(queries, outcomes)):
            if isinstance(outcome, Exception):
                logger.warning("Retrieval failed for %r: %s", query[:100], outcome)
                batch.errors[i] = outcome
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                batch.results[i] = outcome

        batch.metadata = {
            "strategy": opts.strategy,
            "total_queries": len(queries),
            "total_results": sum(len(chunks) for chunks in batch.results.values()),
            "processing_time_ms": int((time.perf_counter() - start) * 1000),
        }
        logger.info(
            "Batch retrieval: %d queries, %d results, %d failed",
            len(queries),
            batch.metadata["total_results"],
            len(batch.errors),
        )
        return batch
