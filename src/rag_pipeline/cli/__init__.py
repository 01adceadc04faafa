"""
CLI module - command-line interface.

Provides the `rag-pipeline` entry point:
- ask:    index a source, answer questions with the LLM
- search: index a source, run batched retrieval only
"""

from rag_pipeline.cli.commands import build_parser, main

__all__ = [
    "build_parser",
    "main",
]
