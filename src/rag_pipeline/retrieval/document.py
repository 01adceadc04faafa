"""
Document model for the retrieval system.

Single responsibility: Define the records that flow from loaders through
the chunker into vector stores.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np


@dataclass(frozen=True)
class Document:
    """
    A unit of source content with provenance metadata.

    Produced by loaders; never mutated afterwards.
    """
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def source(self) -> str | None:
        return self.metadata.get("source")

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"content": self.content, "metadata": dict(self.metadata)}


@dataclass(frozen=True)
class Chunk(Document):
    """
    A bounded window of a Document's content.

    Metadata is the parent's plus `chunk_index` and `start_index`.
    """

    @property
    def chunk_index(self) -> int | None:
        return self.metadata.get("chunk_index")


@dataclass(frozen=True)
class IndexedRecord:
    """The unit stored in a vector index: an embedded chunk."""
    id: str
    vector: np.ndarray
    chunk: Chunk
