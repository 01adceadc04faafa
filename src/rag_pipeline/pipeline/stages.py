"""
Query stages - retrieve, then generate.

Each stage is created by a factory with injected dependencies and is a
plain async function `state -> partial state update`. This enables:
- Testing each stage in isolation with fakes
- An explicit composition in the orchestrator, no graph engine

Prompt construction is a pure function and can be tested without an LLM.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable

from langchain_core.prompts import ChatPromptTemplate

from rag_pipeline.core.errors import GenerationFailed

if TYPE_CHECKING:
    from rag_pipeline.core import ChatModel
    from rag_pipeline.pipeline.state import PipelineState
    from rag_pipeline.retrieval.retriever import RetrievalOptions, Retriever

logger = logging.getLogger(__name__)

Stage = Callable[["PipelineState"], Awaitable[dict]]

# Same wording as the widely used "rlm/rag-prompt" hub prompt
RAG_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "human",
            "You are an assistant for question-answering tasks. Use the following "
            "pieces of retrieved context to answer the question. If you don't know "
            "the answer, just say that you don't know. Use three sentences maximum "
            "and keep the answer concise.\n"
            "Question: {question} \n"
            "Context: {context} \n"
            "Answer:",
        )
    ]
)


def build_context_text(state: PipelineState) -> str:
    """
    Join retrieved chunk contents with blank lines.

    This is a PURE FUNCTION - same inputs always produce same output.
    """
    return "\n\n".join(chunk.content for chunk in state["context"])


def create_retrieve_stage(
    retriever: Retriever,
    options: RetrievalOptions | None = None,
) -> Stage:
    """
    Factory that creates the retrieve stage.

    Reads from state: question
    Writes to state:  context
    """

    async def retrieve(state: PipelineState) -> dict:
        chunks = await retriever.retrieve(state["question"], options)
        return {"context": chunks}

    return retrieve


def _response_text(response) -> str:
    content = getattr(response, "content", response)
    return content if isinstance(content, str) else str(content)


def create_generate_stage(
    model: ChatModel,
    prompt: ChatPromptTemplate = RAG_PROMPT,
) -> Stage:
    """
    Factory that creates the generate stage with an injectable chat model.

    Reads from state: question, context
    Writes to state:  answer

    Any model error is raised as GenerationFailed; no partial answer is kept.
    """

    async def generate(state: PipelineState) -> dict:
        messages = prompt.invoke(
            {"question": state["question"], "context": build_context_text(state)}
        )
        try:
            response = await model.ainvoke(messages)
        except Exception as e:
            logger.error("Generation failed: %s", e)
            raise GenerationFailed(state["question"], str(e) or type(e).__name__) from e

        return {"answer": _response_text(response)}

    return generate
