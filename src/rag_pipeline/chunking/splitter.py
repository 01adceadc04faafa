"""
Text chunking with overlap for the retrieval pipeline.

Implements character-based chunking to avoid tokenizer dependencies.

Each window is at most `chunk_size` characters and the next window starts
exactly `chunk_overlap` characters before the previous one ended, so the
original content is rebuilt by concatenating chunks with each overlapping
prefix (after the first chunk) removed.
"""

from __future__ import annotations

import logging
from typing import Sequence

from rag_pipeline.core.errors import InvalidChunkConfig
from rag_pipeline.retrieval.document import Chunk, Document

logger = logging.getLogger(__name__)

# Checked in order; the first one found in the tail of the window wins
BOUNDARIES = ("\n\n", "\n", ". ", "! ", "? ", " ")

# A boundary must fall in the last 30% of the window
BOUNDARY_TOLERANCE = 0.3


class TextChunker:
    """Character-based text chunker with overlap support."""

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200):
        """
        Args:
            chunk_size: Maximum size of each chunk in characters
            chunk_overlap: Characters shared by consecutive chunks

        Raises:
            InvalidChunkConfig: unless 0 <= chunk_overlap < chunk_size
        """
        if chunk_size <= 0 or chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise InvalidChunkConfig(chunk_size, chunk_overlap)

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def _window_end(self, text: str, start: int) -> int:
        """Pick the end of the window starting at `start`."""
        hard_end = start + self.chunk_size
        if hard_end >= len(text):
            return len(text)

        window = text[start:hard_end]
        floor = max(
            int(self.chunk_size * (1 - BOUNDARY_TOLERANCE)),
            self.chunk_overlap + 1,
        )
        for boundary in BOUNDARIES:
            cut = window.rfind(boundary)
            if cut == -1:
                continue
            length = cut + len(boundary)
            if length >= floor:
                return start + length

        return hard_end

    def split_text(self, text: str) -> list[tuple[int, str]]:
        """
        Split text into overlapping windows.

        Returns:
            List of (start_index, content) pairs
        """
        if not text:
            return []

        windows = []
        start = 0
        while True:
            end = self._window_end(text, start)
            windows.append((start, text[start:end]))
            if end >= len(text):
                break
            start = end - self.chunk_overlap

        return windows

    def split_documents(self, documents: Sequence[Document]) -> list[Chunk]:
        """Split each Document into Chunks that inherit its metadata."""
        chunks = []
        for doc in documents:
            for index, (start, content) in enumerate(self.split_text(doc.content)):
                chunks.append(
                    Chunk(
                        content=content,
                        metadata={**doc.metadata, "chunk_index": index, "start_index": start},
                    )
                )

        logger.info(
            "Split %d documents into %d chunks (size=%d, overlap=%d)",
            len(documents),
            len(chunks),
            self.chunk_size,
            self.chunk_overlap,
        )
        return chunks

    def get_chunk_stats(self, chunks: Sequence[Chunk]) -> dict:
        """Get statistics about a set of chunks."""
        if not chunks:
            return {
                "chunk_count": 0,
                "total_chars": 0,
                "avg_chunk_size": 0,
                "min_chunk_size": 0,
                "max_chunk_size": 0,
            }

        sizes = [len(c.content) for c in chunks]
        return {
            "chunk_count": len(chunks),
            "total_chars": sum(sizes),
            "avg_chunk_size": sum(sizes) // len(chunks),
            "min_chunk_size": min(sizes),
            "max_chunk_size": max(sizes),
        }


def split_documents(
    documents: Sequence[Document],
    chunk_size: int,
    chunk_overlap: int,
) -> list[Chunk]:
    """Split documents with a one-off chunker (convenience function)."""
    return TextChunker(chunk_size, chunk_overlap).split_documents(documents)
