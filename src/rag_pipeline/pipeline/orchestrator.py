"""
RAG pipeline orchestrator - the public API for indexing and querying.

Lifecycle:
    UNINITIALIZED -> INDEXING -> READY
                          \\-> FAILED (terminal)

initialize() runs load -> chunk -> add once. add_documents() extends a READY
index. query() runs the retrieve stage then the generate stage; per-query
failures never change the lifecycle state.

Mutating calls (initialize, add_documents) must be serialized by the caller.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from langchain_openai import ChatOpenAI

from rag_pipeline.chunking import TextChunker
from rag_pipeline.core.errors import PipelineNotReady
from rag_pipeline.embeddings import get_embedding_provider
from rag_pipeline.loaders import load_documents
from rag_pipeline.observability import (
    RAG_CHUNK_COUNT,
    RAG_DOCUMENT_COUNT,
    RAG_PROCESSING_TIME_MS,
    RAG_RETRIEVED_DOC_COUNT,
    generate_attributes,
    get_tracer,
    index_attributes,
    record_content,
    retrieve_attributes,
)
from rag_pipeline.pipeline.config import ChunkConfig, PipelineConfig
from rag_pipeline.pipeline.stages import create_generate_stage, create_retrieve_stage
from rag_pipeline.pipeline.state import (
    PipelineStatus,
    QueryMetadata,
    QueryResponse,
    create_initial_state,
)
from rag_pipeline.retrieval import Retriever, get_vector_store

if TYPE_CHECKING:
    from rag_pipeline.core import ChatModel, EmbeddingProvider, VectorStore
    from rag_pipeline.loaders import LoaderConfig
    from rag_pipeline.observability import TracerProtocol
    from rag_pipeline.retrieval import RetrievalOptions

logger = logging.getLogger(__name__)


class RAGPipeline:
    """
    Builds an index from configured sources and answers questions over it.

    Dependencies are INJECTED when given, created from config otherwise:
        pipeline = RAGPipeline(config)                       # production
        pipeline = RAGPipeline(config, MockEmbeddings(),     # testing
                               chat_model=fake_model)
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        embeddings: EmbeddingProvider | None = None,
        store: VectorStore | None = None,
        chat_model: ChatModel | None = None,
        tracer: TracerProtocol | None = None,
    ):
        self.config = config or PipelineConfig()
        self._embeddings = embeddings or get_embedding_provider(model=self.config.embedding_model)
        self._store = store or get_vector_store(self.config.vector_store, self._embeddings)
        self._chat_model = chat_model
        self._retriever = Retriever(self._store, self.config.retrieval)
        self._tracer = tracer or get_tracer()

        self._chunker: TextChunker | None = None
        self._status = PipelineStatus.UNINITIALIZED
        self._documents_loaded = 0

    # -------------------------------------------------------------------------
    # STATE
    # -------------------------------------------------------------------------

    @property
    def status(self) -> PipelineStatus:
        return self._status

    @property
    def retriever(self) -> Retriever:
        return self._retriever

    def _require(self, operation: str, status: PipelineStatus) -> None:
        if self._status is not status:
            raise PipelineNotReady(operation, self._status.value)

    def _get_chat_model(self) -> ChatModel:
        if self._chat_model is None:
            self._chat_model = ChatOpenAI(
                model=self.config.llm_model,
                temperature=self.config.llm_temperature,
            )
        return self._chat_model

    # -------------------------------------------------------------------------
    # INDEXING
    # -------------------------------------------------------------------------

    async def _index(self, loader_config: LoaderConfig) -> int:
        """Load, chunk and add one source. Returns the number of chunks added."""
        with self._tracer.start_span(
            "rag.index",
            attributes=index_attributes(loader_config.kind, self.config.vector_store.kind),
        ) as span:
            docs = await load_documents(loader_config)
            chunks = self._chunker.split_documents(docs)
            await self._store.add(chunks)

            span.set_attributes({RAG_DOCUMENT_COUNT: len(docs), RAG_CHUNK_COUNT: len(chunks)})

        self._documents_loaded += len(docs)
        return len(chunks)

    async def initialize(
        self,
        loader_config: LoaderConfig,
        chunk_config: ChunkConfig | None = None,
    ) -> None:
        """
        Build the index from a source: UNINITIALIZED -> INDEXING -> READY.

        Any error moves the pipeline to FAILED, clears whatever was indexed,
        and propagates.
        """
        self._require("initialize", PipelineStatus.UNINITIALIZED)
        chunk_config = chunk_config or self.config.chunking

        self._status = PipelineStatus.INDEXING
        logger.info("Indexing %s source", loader_config.kind)
        try:
            self._chunker = TextChunker(chunk_config.chunk_size, chunk_config.chunk_overlap)
            chunk_count = await self._index(loader_config)
        except Exception as e:
            self._status = PipelineStatus.FAILED
            logger.error("Indexing failed, pipeline FAILED: %s", e)
            try:
                await self._store.clear()
            except Exception as clear_error:
                logger.warning("Could not clear partial index: %s", clear_error)
            raise

        self._status = PipelineStatus.READY
        logger.info("Pipeline READY with %d chunks indexed", chunk_count)

    async def add_documents(self, loader_config: LoaderConfig) -> int:
        """Extend a READY index with another source. Returns chunks added."""
        self._require("add documents", PipelineStatus.READY)

        chunk_count = await self._index(loader_config)
        logger.info("Added %d chunks (total %d)", chunk_count, self._store.count)
        return chunk_count

    # -------------------------------------------------------------------------
    # QUERYING
    # -------------------------------------------------------------------------

    async def query(
        self,
        question: str,
        options: RetrievalOptions | None = None,
    ) -> QueryResponse:
        """
        Answer a question: retrieve stage, then generate stage.

        Raises:
            PipelineNotReady: if the pipeline is not READY
            GenerationFailed: if the language model call fails
        """
        self._require("query", PipelineStatus.READY)
        opts = options or self.config.retrieval
        start = time.perf_counter()

        retrieve = create_retrieve_stage(self._retriever, opts)
        generate = create_generate_stage(self._get_chat_model())

        state = create_initial_state(question)

        with self._tracer.start_span(
            "rag.retrieve", attributes=retrieve_attributes(opts.strategy, opts.k)
        ) as span:
            state.update(await retrieve(state))
            span.set_attribute(RAG_RETRIEVED_DOC_COUNT, len(state["context"]))

        with self._tracer.start_span(
            "rag.generate", attributes=generate_attributes(self.config.llm_model)
        ) as span:
            state.update(await generate(state))
            record_content(self._tracer, span, question, state["answer"])

            elapsed_ms = int((time.perf_counter() - start) * 1000)
            span.set_attribute(RAG_PROCESSING_TIME_MS, elapsed_ms)

        logger.info(
            "Answered question with %d context chunks in %dms",
            len(state["context"]),
            elapsed_ms,
        )

        return QueryResponse(
            answer=state["answer"],
            context=[chunk.content for chunk in state["context"]],
            metadata=QueryMetadata(
                retrieved_docs=len(state["context"]),
                processing_time_ms=elapsed_ms,
            ),
        )

    # -------------------------------------------------------------------------
    # STATS
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict:
        """Lifecycle status, counts and configuration."""
        return {
            "status": self._status.value,
            "documents_loaded": self._documents_loaded,
            "chunks_indexed": self._store.count,
            "config": self.config.to_dict(),
        }

    async def close(self) -> None:
        """Release the store's connection, if it holds one."""
        await self._store.close()
