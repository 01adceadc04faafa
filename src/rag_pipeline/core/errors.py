"""
Error taxonomy for the retrieval pipeline.

Every error carries a human-readable message plus a details dict with the
operation and the offending configuration value, so callers can decide
between retry and abort without parsing strings.

PROPAGATION:
------------
- Loader and chunker errors abort indexing (pipeline -> FAILED)
- Per-query errors (retrieval, generation) stay local to that query
- Nothing in the core retries; that belongs to the caller
"""

from __future__ import annotations

from typing import Any


class RAGPipelineError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# ---------------------------------------------------------------------------
# LOADING
# ---------------------------------------------------------------------------


class SourceUnavailable(RAGPipelineError):
    """Raised when a web source cannot be fetched."""

    def __init__(self, url: str, reason: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details.update({"operation": "load", "url": url, "reason": reason})
        super().__init__(f"Source unavailable: {url}", details)


class NotFound(RAGPipelineError):
    """Raised when a file source does not exist."""

    def __init__(self, path: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details.update({"operation": "load", "path": path})
        super().__init__(f"File not found: {path}", details)


class UnsupportedFormat(RAGPipelineError):
    """Raised for an unrecognized file format or loader kind."""

    def __init__(self, value: str, field: str = "format", details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details.update({"operation": "load", field: value})
        super().__init__(f"Unsupported {field}: {value}", details)


# ---------------------------------------------------------------------------
# CHUNKING / EMBEDDING / INDEX
# ---------------------------------------------------------------------------


class InvalidChunkConfig(RAGPipelineError):
    """Raised when chunk size and overlap are inconsistent."""

    def __init__(self, chunk_size: int, chunk_overlap: int) -> None:
        super().__init__(
            f"Invalid chunk config: overlap ({chunk_overlap}) must be >= 0 and "
            f"less than chunk size ({chunk_size})",
            {"operation": "split", "chunk_size": chunk_size, "chunk_overlap": chunk_overlap},
        )


class EmbeddingFailed(RAGPipelineError):
    """Raised when the embedding service fails for a batch."""

    def __init__(self, message: str, batch_size: int, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details.update({"operation": "embed", "batch_size": batch_size})
        super().__init__(message, details)


class IndexNotReady(RAGPipelineError):
    """Raised when a search runs before any successful add."""

    def __init__(self, backend: str) -> None:
        super().__init__(
            "Vector index not ready. Add documents before searching.",
            {"operation": "search", "backend": backend},
        )


# ---------------------------------------------------------------------------
# RETRIEVAL / PIPELINE
# ---------------------------------------------------------------------------


class UnknownStrategy(RAGPipelineError):
    """Raised for an unrecognized retrieval strategy name."""

    def __init__(self, strategy: str) -> None:
        super().__init__(
            f"Unknown strategy: {strategy}",
            {"operation": "retrieve", "strategy": strategy},
        )


class MissingScoreThreshold(RAGPipelineError):
    """Raised when the threshold strategy runs without a score cutoff."""

    def __init__(self) -> None:
        super().__init__(
            "Threshold strategy requires a score threshold",
            {"operation": "retrieve", "strategy": "threshold"},
        )


class PipelineNotReady(RAGPipelineError):
    """Raised when an operation is invalid in the pipeline's current state."""

    def __init__(self, operation: str, status: str) -> None:
        super().__init__(
            f"Pipeline cannot {operation} while {status}",
            {"operation": operation, "status": status},
        )


class GenerationFailed(RAGPipelineError):
    """Raised when the language model call fails."""

    def __init__(self, question: str, reason: str) -> None:
        super().__init__(
            f"Generation failed: {reason}",
            {"operation": "generate", "question": question[:100]},
        )
