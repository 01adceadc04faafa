"""
Observability Module - OpenTelemetry tracing for pipeline stages

USAGE:
------
# At application startup:
from rag_pipeline.observability import init_tracing

init_tracing()  # Installs an SDK provider if RAG_TRACING_ENABLED=true

# In code that needs tracing:
from rag_pipeline.observability import get_tracer

tracer = get_tracer()
with tracer.start_span("rag.retrieve", attributes={"rag.top_k": 4}) as span:
    # ... do work ...
    span.set_attribute("rag.retrieved_doc_count", 3)
"""

from __future__ import annotations

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from rag_pipeline.observability.config import (
    TracingConfig,
    get_config,
    reset_config,
)
from rag_pipeline.observability.tracer import (
    TracerProtocol,
    SpanProtocol,
    NoOpTracer,
    NoOpSpan,
    OTelTracer,
    get_tracer,
    record_content,
    reset_tracer,
)
from rag_pipeline.observability.attributes import (
    # GenAI
    GEN_AI_SYSTEM,
    GEN_AI_REQUEST_MODEL,
    GEN_AI_PROMPT,
    GEN_AI_COMPLETION,
    # RAG
    RAG_LOADER_KIND,
    RAG_DOCUMENT_COUNT,
    RAG_CHUNK_COUNT,
    RAG_VECTOR_STORE,
    RAG_STAGE,
    RAG_STRATEGY,
    RAG_TOP_K,
    RAG_RETRIEVED_DOC_COUNT,
    RAG_PROCESSING_TIME_MS,
    # Helpers
    index_attributes,
    retrieve_attributes,
    generate_attributes,
)

logger = logging.getLogger(__name__)

_tracing_initialized = False


def init_tracing(config: TracingConfig | None = None) -> bool:
    """
    Install an OpenTelemetry SDK tracer provider.

    This should be called once at application startup. Spans go to the
    OTLP/HTTP endpoint when one is configured, otherwise to the console.

    Returns:
        True if tracing was initialized, False if disabled
    """
    global _tracing_initialized
    if _tracing_initialized:
        return True

    config = config or get_config()

    if not config.enabled:
        logger.debug("Tracing disabled")
        return False

    if config.collector_endpoint:
        exporter = OTLPSpanExporter(endpoint=config.collector_endpoint)
        logger.info("Exporting spans to %s", config.collector_endpoint)
    else:
        exporter = ConsoleSpanExporter()
        logger.info("Exporting spans to console")

    provider = TracerProvider(resource=Resource.create({"service.name": config.service_name}))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    reset_tracer()
    _tracing_initialized = True
    return True


def shutdown_tracing() -> None:
    """Flush and shut down the tracer provider."""
    global _tracing_initialized

    if not _tracing_initialized:
        return

    provider = trace.get_tracer_provider()
    if isinstance(provider, TracerProvider):
        provider.shutdown()

    reset_tracer()
    reset_config()
    _tracing_initialized = False


__all__ = [
    # Initialization
    "init_tracing",
    "shutdown_tracing",
    # Config
    "TracingConfig",
    "get_config",
    "reset_config",
    # Tracer
    "TracerProtocol",
    "SpanProtocol",
    "NoOpTracer",
    "NoOpSpan",
    "OTelTracer",
    "get_tracer",
    "record_content",
    "reset_tracer",
    # Attributes - GenAI
    "GEN_AI_SYSTEM",
    "GEN_AI_REQUEST_MODEL",
    "GEN_AI_PROMPT",
    "GEN_AI_COMPLETION",
    # Attributes - RAG
    "RAG_LOADER_KIND",
    "RAG_DOCUMENT_COUNT",
    "RAG_CHUNK_COUNT",
    "RAG_VECTOR_STORE",
    "RAG_STAGE",
    "RAG_STRATEGY",
    "RAG_TOP_K",
    "RAG_RETRIEVED_DOC_COUNT",
    "RAG_PROCESSING_TIME_MS",
    # Helpers
    "index_attributes",
    "retrieve_attributes",
    "generate_attributes",
]
