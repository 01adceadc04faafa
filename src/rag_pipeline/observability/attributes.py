"""
Semantic Conventions for Span Attributes

Defines attribute keys following OpenTelemetry GenAI conventions
plus a custom namespace for pipeline stages.

Reference: https://opentelemetry.io/docs/specs/semconv/gen-ai/
"""

# ---------------------------------------------------------------------------
# GENAI NAMESPACE (OTel standard)
# ---------------------------------------------------------------------------

GEN_AI_SYSTEM = "gen_ai.system"  # "openai"
GEN_AI_REQUEST_MODEL = "gen_ai.request.model"  # "gpt-4o-mini"

# Request/Response (optional, controlled by RAG_CAPTURE_CONTENT)
GEN_AI_PROMPT = "gen_ai.prompt"
GEN_AI_COMPLETION = "gen_ai.completion"


# ---------------------------------------------------------------------------
# RAG NAMESPACE (custom)
# ---------------------------------------------------------------------------

# Indexing
RAG_LOADER_KIND = "rag.loader.kind"  # "web", "file", "text"
RAG_DOCUMENT_COUNT = "rag.document_count"
RAG_CHUNK_COUNT = "rag.chunk_count"
RAG_VECTOR_STORE = "rag.vector_store"  # "memory", "remote"

# Querying
RAG_STAGE = "rag.stage"  # "retrieve", "generate"
RAG_STRATEGY = "rag.strategy"  # "similarity", "mmr", "threshold"
RAG_TOP_K = "rag.top_k"
RAG_RETRIEVED_DOC_COUNT = "rag.retrieved_doc_count"
RAG_PROCESSING_TIME_MS = "rag.processing_time_ms"


# ---------------------------------------------------------------------------
# HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def index_attributes(
    loader_kind: str,
    vector_store: str,
    document_count: int | None = None,
    chunk_count: int | None = None,
) -> dict:
    """Create attributes dict for an indexing span."""
    attrs = {
        RAG_LOADER_KIND: loader_kind,
        RAG_VECTOR_STORE: vector_store,
    }
    if document_count is not None:
        attrs[RAG_DOCUMENT_COUNT] = document_count
    if chunk_count is not None:
        attrs[RAG_CHUNK_COUNT] = chunk_count
    return attrs


def retrieve_attributes(strategy: str, k: int) -> dict:
    """Create attributes dict for a retrieve stage span."""
    return {
        RAG_STAGE: "retrieve",
        RAG_STRATEGY: strategy,
        RAG_TOP_K: k,
    }


def generate_attributes(model: str) -> dict:
    """Create attributes dict for a generate stage span."""
    return {
        RAG_STAGE: "generate",
        GEN_AI_SYSTEM: "openai",
        GEN_AI_REQUEST_MODEL: model,
    }
