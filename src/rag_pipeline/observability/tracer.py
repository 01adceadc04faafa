"""
Stage tracer - one span per pipeline stage, or nothing at all.

get_tracer() hands out a process-wide tracer:
- OTelTracer when RAG_TRACING_ENABLED is set and init_tracing() installed
  an SDK provider
- NoOpTracer otherwise, so instrumented code pays no cost

A span that exits with an exception is marked as failed and carries the
exception event; the exception itself always propagates.

Raw questions and answers are only attached when the tracer was built with
capture_content=True (RAG_CAPTURE_CONTENT).
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, ContextManager, Iterator, Mapping, Protocol

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import Span, Status, StatusCode

from rag_pipeline.observability.attributes import GEN_AI_COMPLETION, GEN_AI_PROMPT


class SpanProtocol(Protocol):
    def set_attribute(self, key: str, value: Any) -> None: ...

    def set_attributes(self, attributes: Mapping[str, Any]) -> None: ...

    def set_status(self, status: str, description: str | None = None) -> None: ...

    def record_exception(self, exception: BaseException) -> None: ...


class TracerProtocol(Protocol):
    """What the pipeline needs from a tracer."""

    capture_content: bool

    def start_span(
        self, name: str, attributes: Mapping[str, Any] | None = None
    ) -> ContextManager[SpanProtocol]: ...


# ---------------------------------------------------------------------------
# DISABLED
# ---------------------------------------------------------------------------


class NoOpSpan:
    """Accepts everything, records nothing."""

    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        pass

    def set_status(self, status: str, description: str | None = None) -> None:
        pass

    def record_exception(self, exception: BaseException) -> None:
        pass


class NoOpTracer:
    capture_content = False

    @contextmanager
    def start_span(
        self, name: str, attributes: Mapping[str, Any] | None = None
    ) -> Iterator[NoOpSpan]:
        yield NoOpSpan()


# ---------------------------------------------------------------------------
# OPENTELEMETRY
# ---------------------------------------------------------------------------


class OTelSpan:
    """Adapts an OpenTelemetry span; status strings are "ok" or "error"."""

    def __init__(self, span: Span):
        self._span = span

    def set_attribute(self, key: str, value: Any) -> None:
        self._span.set_attribute(key, value)

    def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        self._span.set_attributes(dict(attributes))

    def set_status(self, status: str, description: str | None = None) -> None:
        if status == "ok":
            self._span.set_status(Status(StatusCode.OK))
        else:
            self._span.set_status(Status(StatusCode.ERROR, description))

    def record_exception(self, exception: BaseException) -> None:
        self._span.record_exception(exception)


class OTelTracer:
    """Opens stage spans as children of the current span."""

    def __init__(self, tracer: trace.Tracer, capture_content: bool = False):
        self._tracer = tracer
        self.capture_content = capture_content

    @contextmanager
    def start_span(
        self, name: str, attributes: Mapping[str, Any] | None = None
    ) -> Iterator[OTelSpan]:
        with self._tracer.start_as_current_span(
            name,
            attributes=dict(attributes or {}),
            record_exception=True,
            set_status_on_exception=True,
        ) as span:
            yield OTelSpan(span)


def record_content(
    tracer: TracerProtocol,
    span: SpanProtocol,
    prompt: str,
    completion: str,
) -> None:
    """Attach question and answer text, only if the tracer allows it."""
    if tracer.capture_content:
        span.set_attributes({GEN_AI_PROMPT: prompt, GEN_AI_COMPLETION: completion})


# ---------------------------------------------------------------------------
# FACTORY
# ---------------------------------------------------------------------------


_tracer: TracerProtocol | None = None


def get_tracer() -> TracerProtocol:
    """Return the process-wide tracer, creating it on first use."""
    global _tracer
    if _tracer is None:
        _tracer = _build_tracer()
    return _tracer


def _build_tracer() -> TracerProtocol:
    from rag_pipeline.observability.config import get_config

    config = get_config()
    if not config.enabled:
        return NoOpTracer()

    # init_tracing() installs the SDK provider; before that spans go nowhere
    if not isinstance(trace.get_tracer_provider(), TracerProvider):
        return NoOpTracer()

    return OTelTracer(
        trace.get_tracer(config.service_name),
        capture_content=config.capture_content,
    )


def reset_tracer() -> None:
    """Drop the cached tracer (tests, and after init_tracing)."""
    global _tracer
    _tracer = None
