"""
Tracing Configuration

Loads tracing settings from environment variables.
"""

import os
from dataclasses import dataclass


@dataclass
class TracingConfig:
    """Configuration for OpenTelemetry tracing.

    Environment Variables:
        RAG_TRACING_ENABLED: Enable tracing (default: false)
        RAG_SERVICE_NAME: Service name on exported spans (default: rag-pipeline)
        OTEL_EXPORTER_OTLP_ENDPOINT: OTLP/HTTP endpoint (console exporter if empty)
        RAG_CAPTURE_CONTENT: Record questions and answers on spans (default: false)

    PRIVACY WARNING:
        Setting RAG_CAPTURE_CONTENT=true exports raw questions and generated
        answers to the configured span exporter.
    """

    enabled: bool = False
    service_name: str = "rag-pipeline"
    collector_endpoint: str | None = None
    capture_content: bool = False

    @classmethod
    def from_env(cls) -> "TracingConfig":
        """Load config from environment variables."""
        return cls(
            enabled=os.environ.get("RAG_TRACING_ENABLED", "false").lower() in ("true", "1", "yes"),
            service_name=os.environ.get("RAG_SERVICE_NAME", "rag-pipeline"),
            collector_endpoint=os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT") or None,
            capture_content=os.environ.get("RAG_CAPTURE_CONTENT", "false").lower() in ("true", "1", "yes"),
        )


# Global config singleton
_config: TracingConfig | None = None


def get_config() -> TracingConfig:
    """Get the global tracing config (lazy-loaded from env)."""
    global _config
    if _config is None:
        _config = TracingConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset config (useful for testing)."""
    global _config
    _config = None
