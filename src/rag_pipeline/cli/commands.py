"""
CLI commands - entry points for indexing a source and querying it.

Each command follows a consistent pattern:
1. Parse arguments
2. Load environment
3. Build the pipeline and index the source
4. Print results
5. Return exit code

Commands are thin wrappers around RAGPipeline; all behavior lives in the
library so it stays testable without a terminal.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from rag_pipeline.core.errors import RAGPipelineError
from rag_pipeline.loaders import FileLoaderConfig, TextLoaderConfig, WebLoaderConfig
from rag_pipeline.observability import init_tracing, shutdown_tracing
from rag_pipeline.pipeline import PipelineConfig, RAGPipeline
from rag_pipeline.retrieval import RetrievalOptions


def _load_env() -> None:
    """Load environment variables from .env file."""
    load_dotenv()


def _configure_logging() -> None:
    level = os.environ.get("RAG_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _positive_int(value: str) -> int:
    k = int(value)
    if k <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return k


def _create_pipeline(config: PipelineConfig) -> RAGPipeline:
    return RAGPipeline(config)


def _loader_config(args: argparse.Namespace):
    """Resolve the source flags into a loader configuration."""
    if args.url:
        return WebLoaderConfig(url=args.url, selector=args.selector)
    if args.file:
        return FileLoaderConfig(path=args.file, format=args.format)
    return TextLoaderConfig(content=args.text)


def _retrieval_options(args: argparse.Namespace, config: PipelineConfig) -> RetrievalOptions:
    return config.retrieval.model_copy(
        update={
            "k": args.k if args.k is not None else config.retrieval.k,
            "strategy": args.strategy or config.retrieval.strategy,
            "score_threshold": (
                args.score_threshold
                if args.score_threshold is not None
                else config.retrieval.score_threshold
            ),
        }
    )


# ---------------------------------------------------------------------------
# COMMANDS
# ---------------------------------------------------------------------------


async def _ask(args: argparse.Namespace) -> int:
    config = PipelineConfig.from_env()
    pipeline = _create_pipeline(config)
    options = _retrieval_options(args, config)

    try:
        await pipeline.initialize(_loader_config(args))
        stats = pipeline.get_stats()
        print(f"Indexed {stats['chunks_indexed']} chunks from {stats['documents_loaded']} documents")

        for question in args.questions:
            response = await pipeline.query(question, options)
            print("=" * 60)
            print(f"Q: {question}")
            print(f"A: {response.answer}")
            print(
                f"   ({response.metadata.retrieved_docs} context chunks, "
                f"{response.metadata.processing_time_ms}ms)"
            )
    finally:
        await pipeline.close()

    return 0


async def _search(args: argparse.Namespace) -> int:
    config = PipelineConfig.from_env()
    pipeline = _create_pipeline(config)
    options = _retrieval_options(args, config)

    try:
        await pipeline.initialize(_loader_config(args))
        batch = await pipeline.retriever.batch_retrieve(args.queries, options)
    finally:
        await pipeline.close()

    for position, query in enumerate(batch.queries):
        print("=" * 60)
        print(f"Query: {query}")
        if position in batch.errors:
            print(f"  [ERROR] {batch.errors[position]}")
            continue
        for i, chunk in enumerate(batch.results[position], 1):
            preview = chunk.content[:80].replace("\n", " ")
            print(f"  {i}. [{chunk.source}] {preview}")

    meta = batch.metadata
    print(
        f"\n{meta['total_queries']} queries, {meta['total_results']} results "
        f"({meta['strategy']}, {meta['processing_time_ms']}ms)"
    )
    return 1 if batch.errors else 0


# ---------------------------------------------------------------------------
# ARGUMENT PARSING
# ---------------------------------------------------------------------------


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", help="Index literal text")
    source.add_argument("--file", help="Index a local file")
    source.add_argument("--url", help="Index a web page")

    parser.add_argument("--format", default="txt", help="File format: txt or pdf (default: txt)")
    parser.add_argument("--selector", default="p", help="CSS selector for web pages (default: p)")
    parser.add_argument("-k", type=_positive_int, default=None, help="Chunks to retrieve per question")
    parser.add_argument(
        "--strategy",
        default=None,
        help="Retrieval strategy: similarity, mmr or threshold",
    )
    parser.add_argument(
        "--score-threshold",
        type=float,
        default=None,
        help="Minimum similarity for the threshold strategy",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rag-pipeline",
        description="Index a source and answer questions over it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rag-pipeline ask --file notes.txt "What is the deadline?"
  rag-pipeline ask --url https://example.com --selector article "Summarize"
  rag-pipeline search --text "Dogs are loyal." "loyal pets" "felines"
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ask = subparsers.add_parser("ask", help="Answer questions with the LLM")
    _add_source_arguments(ask)
    ask.add_argument("questions", nargs="+", help="Questions to answer")

    search = subparsers.add_parser("search", help="Retrieve chunks without generating")
    _add_source_arguments(search)
    search.add_argument("queries", nargs="+", help="Queries to run concurrently")

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point with subcommands.

    Usage:
        rag-pipeline ask --text "..." QUESTION...
        rag-pipeline search --file doc.pdf --format pdf QUERY...

    Exit codes: 0 success, 1 pipeline error, 130 interrupted.
    """
    _load_env()
    _configure_logging()

    args = build_parser().parse_args(argv)

    commands = {
        "ask": _ask,
        "search": _search,
    }

    init_tracing()
    try:
        return asyncio.run(commands[args.command](args))
    except RAGPipelineError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    sys.exit(main())
