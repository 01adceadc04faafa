"""
Unit Tests for the Text Chunker

Tests window sizing, overlap and boundary preference of TextChunker.

The central property: dropping each later chunk's overlapping prefix and
concatenating rebuilds the original document exactly.
"""

import pytest

from rag_pipeline.chunking import TextChunker, split_documents
from rag_pipeline.core.errors import InvalidChunkConfig
from rag_pipeline.retrieval.document import Document


# ---------------------------------------------------------------------------
# FIXTURES
# ---------------------------------------------------------------------------


PROSE = (
    "Retrieval-augmented generation combines search with text generation. "
    "Documents are split into chunks before indexing.\n\n"
    "Each chunk is embedded as a vector! Queries are embedded the same way? "
    "The closest chunks become context for the language model.\n"
    "Overlap keeps sentences that straddle a boundary retrievable from both sides. "
    "Smaller chunks are more precise, larger chunks carry more context."
) * 3


def rebuild(chunks, overlap):
    return chunks[0].content + "".join(c.content[overlap:] for c in chunks[1:])


# ---------------------------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------------------------


class TestChunkConfig:
    """Test chunk size / overlap validation."""

    def test_overlap_equal_to_size_rejected(self):
        with pytest.raises(InvalidChunkConfig) as exc_info:
            TextChunker(chunk_size=100, chunk_overlap=100)

        assert exc_info.value.details["chunk_size"] == 100
        assert exc_info.value.details["chunk_overlap"] == 100

    def test_overlap_larger_than_size_rejected(self):
        with pytest.raises(InvalidChunkConfig):
            TextChunker(chunk_size=50, chunk_overlap=80)

    def test_negative_overlap_rejected(self):
        with pytest.raises(InvalidChunkConfig):
            TextChunker(chunk_size=50, chunk_overlap=-1)

    def test_zero_size_rejected(self):
        with pytest.raises(InvalidChunkConfig):
            TextChunker(chunk_size=0, chunk_overlap=0)

    def test_defaults(self):
        chunker = TextChunker()
        assert chunker.chunk_size == 1000
        assert chunker.chunk_overlap == 200


# ---------------------------------------------------------------------------
# SPLITTING
# ---------------------------------------------------------------------------


class TestSplitText:
    """Test window construction."""

    def test_empty_text_yields_no_chunks(self):
        assert TextChunker(100, 10).split_text("") == []

    def test_short_text_is_single_chunk(self):
        windows = TextChunker(100, 10).split_text("short text")
        assert windows == [(0, "short text")]

    @pytest.mark.parametrize(
        "chunk_size,chunk_overlap",
        [(1000, 200), (100, 20), (64, 0), (50, 49), (37, 5), (10, 3)],
    )
    def test_reconstruction(self, chunk_size, chunk_overlap):
        """Concatenating chunks minus their overlap rebuilds the document."""
        chunks = split_documents([Document(content=PROSE)], chunk_size, chunk_overlap)

        assert rebuild(chunks, chunk_overlap) == PROSE

    @pytest.mark.parametrize("chunk_size,chunk_overlap", [(100, 20), (37, 5), (50, 49)])
    def test_windows_respect_size_and_overlap(self, chunk_size, chunk_overlap):
        chunker = TextChunker(chunk_size, chunk_overlap)
        windows = chunker.split_text(PROSE)

        for (start, content), (next_start, _) in zip(windows, windows[1:]):
            assert len(content) <= chunk_size
            # Next window starts exactly `overlap` characters before this one ends
            assert next_start == start + len(content) - chunk_overlap
        assert len(windows[-1][1]) <= chunk_size

    def test_reconstruction_without_any_boundary(self):
        text = "x" * 257
        chunks = split_documents([Document(content=text)], 40, 7)

        assert all(len(c.content) <= 40 for c in chunks)
        assert rebuild(chunks, 7) == text

    def test_prefers_paragraph_boundary(self):
        text = "a" * 80 + "\n\n" + "b" * 80
        windows = TextChunker(100, 10).split_text(text)

        assert windows[0][1] == "a" * 80 + "\n\n"

    def test_prefers_sentence_boundary_over_space(self):
        text = "word " * 15 + "end. " + "tail " * 10
        first = TextChunker(100, 10).split_text(text)[0][1]

        assert first.endswith("end. ")

    def test_ignores_boundary_too_early_in_window(self):
        """A boundary outside the tolerance band falls back to a hard cut."""
        text = "ab. " + "c" * 200
        first = TextChunker(100, 10).split_text(text)[0][1]

        assert len(first) == 100


class TestSplitDocuments:
    """Test chunk metadata."""

    def test_chunks_inherit_parent_metadata(self):
        doc = Document(content=PROSE, metadata={"source": "notes.txt", "page": 2})
        chunks = TextChunker(200, 40).split_documents([doc])

        assert len(chunks) > 1
        for i, chunk in enumerate(chunks):
            assert chunk.source == "notes.txt"
            assert chunk.metadata["page"] == 2
            assert chunk.chunk_index == i

    def test_start_index_points_into_parent(self):
        doc = Document(content=PROSE)
        for chunk in TextChunker(150, 30).split_documents([doc]):
            start = chunk.metadata["start_index"]
            assert PROSE[start : start + len(chunk.content)] == chunk.content

    def test_multiple_documents_restart_chunk_index(self):
        docs = [Document(content="first " * 50), Document(content="second " * 50)]
        chunks = TextChunker(100, 10).split_documents(docs)

        assert [c.chunk_index for c in chunks].count(0) == 2

    def test_empty_document_contributes_nothing(self):
        chunks = TextChunker(100, 10).split_documents([Document(content="")])
        assert chunks == []


class TestChunkStats:
    def test_stats(self):
        chunker = TextChunker(100, 10)
        chunks = chunker.split_documents([Document(content=PROSE)])
        stats = chunker.get_chunk_stats(chunks)

        assert stats["chunk_count"] == len(chunks)
        assert stats["max_chunk_size"] <= 100

    def test_stats_empty(self):
        assert TextChunker().get_chunk_stats([])["chunk_count"] == 0
