"""
Query-scoped tracing context using Langfuse SDK v3.

One TracingContext covers one ``process_query`` call. Spans and
generations are created with an explicit trace context so they nest under
the query's root span regardless of OpenTelemetry context state, which
matters once calls are interleaved with ``await`` points.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

from langfuse.types import TraceContext

from .client import get_tracing_client

logger = logging.getLogger(__name__)


@dataclass
class _Observation:
    """Shared lifecycle for spans and generations."""

    name: str
    enabled: bool = False
    input: Optional[Any] = None
    metadata: Optional[dict] = None
    _trace_context: Optional[TraceContext] = field(default=None, repr=False)
    _context_manager: Any = field(default=None, repr=False)
    _observation: Any = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)
    _output: Optional[Any] = field(default=None, repr=False)
    _status: str = field(default="success", repr=False)

    as_type = "span"

    def _start_kwargs(self) -> dict[str, Any]:
        return {}

    def _end_kwargs(self) -> dict[str, Any]:
        return {}

    def start(self) -> None:
        if not self.enabled:
            return
        client = get_tracing_client()
        if not client or not client.client:
            return
        try:
            self._start_time = time.time()
            self._context_manager = client.client.start_as_current_observation(
                trace_context=self._trace_context,
                as_type=self.as_type,
                name=self.name,
                input=self.input,
                metadata=self.metadata,
                **self._start_kwargs(),
            )
            self._observation = self._context_manager.__enter__()
        except Exception as e:
            logger.warning("Failed to start %s '%s': %s", self.as_type, self.name, e)
            self._observation = None

    def end(self) -> None:
        if not self.enabled or not self._observation:
            return
        try:
            update: dict[str, Any] = {
                "metadata": {
                    "status": self._status,
                    "duration_ms": round((time.time() - self._start_time) * 1000, 2),
                },
                **self._end_kwargs(),
            }
            if self._output is not None:
                update["output"] = self._output
            self._observation.update(**update)
            if self._context_manager:
                self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning("Failed to end %s '%s': %s", self.as_type, self.name, e)

    def set_output(self, output: Any) -> None:
        self._output = output

    def set_status(self, status: str) -> None:
        self._status = status


@dataclass
class SpanContext(_Observation):
    """A tracing span (tool call, prompt lookup, ...)."""


@dataclass
class GenerationContext(_Observation):
    """An LLM completion call."""

    model: str = ""
    model_parameters: Optional[dict] = None
    _usage: Optional[dict] = field(default=None, repr=False)

    as_type = "generation"

    def _start_kwargs(self) -> dict[str, Any]:
        return {"model": self.model, "model_parameters": self.model_parameters}

    def _end_kwargs(self) -> dict[str, Any]:
        return {"usage_details": self._usage} if self._usage else {}

    def set_usage(
        self,
        prompt_tokens: Optional[int] = None,
        completion_tokens: Optional[int] = None,
        total_tokens: Optional[int] = None,
    ) -> None:
        usage = {
            "input": prompt_tokens,
            "output": completion_tokens,
            "total": total_tokens,
        }
        self._usage = {k: v for k, v in usage.items() if v is not None}


@dataclass
class TracingContext:
    """
    Tracing state for a single query.

    All methods degrade to no-ops when no enabled tracing client exists at
    construction time.
    """

    query_id: str
    session_id: Optional[str] = None
    _enabled: bool = field(default=False, repr=False)
    _context_manager: Any = field(default=None, repr=False)
    _root_span: Any = field(default=None, repr=False)
    _trace_context: Optional[TraceContext] = field(default=None, repr=False)
    _start_time: float = field(default_factory=time.time, repr=False)

    def __post_init__(self):
        client = get_tracing_client()
        self._enabled = client is not None and client.enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start_trace(self, name: str = "process_query", query: Optional[str] = None) -> None:
        """Open the root span for this query."""
        if not self._enabled:
            return
        client = get_tracing_client()
        if not client or not client.client:
            return
        try:
            self._context_manager = client.client.start_as_current_observation(
                as_type="span",
                name=name,
                input={"query": query} if query else None,
                metadata={"query_id": self.query_id},
            )
            self._root_span = self._context_manager.__enter__()
            self._root_span.update_trace(session_id=self.session_id)
            trace_id = getattr(self._root_span, "trace_id", None)
            span_id = getattr(self._root_span, "id", None)
            if trace_id and span_id:
                self._trace_context = TraceContext(
                    trace_id=trace_id, parent_span_id=span_id
                )
            self._start_time = time.time()
        except Exception as e:
            logger.warning("[%s] Failed to start trace: %s", self.query_id, e)
            self._root_span = None

    def end_trace(self, output: Optional[str] = None, status: str = "success") -> None:
        """Close the root span."""
        if not self._enabled or not self._root_span:
            return
        try:
            self._root_span.update(
                output=output,
                metadata={
                    "status": status,
                    "duration_ms": round((time.time() - self._start_time) * 1000, 2),
                },
            )
            if self._context_manager:
                self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning("[%s] Failed to end trace: %s", self.query_id, e)

    @contextmanager
    def span(
        self,
        name: str,
        metadata: Optional[dict] = None,
        input: Optional[Any] = None,
    ) -> Generator[SpanContext, None, None]:
        """Create a span nested under the query's root span."""
        span_ctx = SpanContext(
            name=name,
            enabled=self._enabled,
            input=input,
            metadata=metadata,
            _trace_context=self._trace_context,
        )
        try:
            span_ctx.start()
            yield span_ctx
        finally:
            span_ctx.end()

    @contextmanager
    def generation(
        self,
        name: str,
        model: str,
        input: Optional[Any] = None,
        metadata: Optional[dict] = None,
        model_parameters: Optional[dict] = None,
    ) -> Generator[GenerationContext, None, None]:
        """Create a generation for an LLM call."""
        gen_ctx = GenerationContext(
            name=name,
            enabled=self._enabled,
            input=input,
            metadata=metadata,
            model=model,
            model_parameters=model_parameters,
            _trace_context=self._trace_context,
        )
        try:
            gen_ctx.start()
            yield gen_ctx
        finally:
            gen_ctx.end()
