"""Chunking module - split Documents into overlapping Chunks."""

from rag_pipeline.chunking.splitter import TextChunker, split_documents

__all__ = ["TextChunker", "split_documents"]
