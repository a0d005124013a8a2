"""
Langfuse tracing integration for PromptBinder.

Provides observability for LLM calls, prompt lookups and tool executions.
"""

from .client import (
    TracingClient,
    init_tracing_client,
    init_tracing_from_config,
    get_tracing_client,
    shutdown_tracing,
)
from .context import (
    TracingContext,
    SpanContext,
    GenerationContext,
)

__all__ = [
    "TracingClient",
    "init_tracing_client",
    "init_tracing_from_config",
    "get_tracing_client",
    "shutdown_tracing",
    "TracingContext",
    "SpanContext",
    "GenerationContext",
]
