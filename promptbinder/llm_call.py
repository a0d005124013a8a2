"""
LLM completion interface for PromptBinder.

Wraps an OpenAI-compatible chat completions endpoint and normalizes its
responses into plain text plus zero or more ToolCallRequests.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import json_repair
from openai import AsyncOpenAI

from .config import config
from .exceptions import CompletionError
from .models import ToolCallRequest
from .tracing import TracingContext

logger = logging.getLogger(__name__)


@dataclass
class Completion:
    """One completion response: text, requested tool calls, or both."""

    text: Optional[str] = None
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    usage: Optional[dict] = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


def parse_tool_arguments(raw: Optional[str], tool_name: str = "") -> dict[str, Any]:
    """
    Parse the JSON argument string the model produced for a tool call.

    Malformed JSON is repaired with json_repair; anything that still is not
    an object yields ``{}``.
    """
    if not raw or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Repairing malformed arguments for tool '%s'", tool_name)
        parsed = json_repair.loads(raw)
    if not isinstance(parsed, dict):
        logger.warning(
            "Arguments for tool '%s' are not an object (%s), using {}",
            tool_name,
            type(parsed).__name__,
        )
        return {}
    return parsed


class CompletionClient:
    """Async client for the completion endpoint."""

    def __init__(
        self,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model or config.llm.model
        self.temperature = (
            temperature if temperature is not None else config.llm.temperature
        )
        self.max_tokens = max_tokens if max_tokens is not None else config.llm.max_tokens
        self._client = client or AsyncOpenAI(
            base_url=base_url or config.llm.base_url or None,
            # Local OpenAI-compatible servers (vLLM, Ollama) do not require auth
            api_key=api_key or config.llm.api_key or "not-needed",
            timeout=config.llm.timeout,
        )

    async def complete(
        self,
        messages: list[dict],
        tools: Optional[list[dict]] = None,
        tracing_context: Optional[TracingContext] = None,
        name: str = "completion",
    ) -> Completion:
        """
        Request a completion.

        ``tool_choice="auto"`` is sent whenever ``tools`` is non-empty; with
        no tools neither parameter is sent.

        Raises:
            CompletionError: If the API call fails or returns no choices.
        """
        create_kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if tools:
            create_kwargs["tools"] = tools
            create_kwargs["tool_choice"] = "auto"

        if tracing_context:
            with tracing_context.generation(
                name=name,
                model=self.model,
                input=messages,
                model_parameters={
                    "temperature": self.temperature,
                    "max_tokens": self.max_tokens,
                },
            ) as gen:
                try:
                    completion = await self._create(create_kwargs)
                except CompletionError:
                    gen.set_status("error")
                    raise
                gen.set_output(
                    {
                        "text": completion.text,
                        "tool_calls": [c.tool_name for c in completion.tool_calls],
                    }
                )
                if completion.usage:
                    gen.set_usage(**completion.usage)
                return completion

        return await self._create(create_kwargs)

    async def _create(self, create_kwargs: dict[str, Any]) -> Completion:
        try:
            response = await self._client.chat.completions.create(**create_kwargs)
        except Exception as e:
            logger.error("Completion call failed: %s", e)
            raise CompletionError(f"Completion call failed: {e}") from e

        if not response.choices:
            raise CompletionError("Completion response contained no choices")

        message = response.choices[0].message
        tool_calls = [
            ToolCallRequest(
                id=call.id,
                tool_name=call.function.name,
                arguments=parse_tool_arguments(call.function.arguments, call.function.name),
            )
            for call in (message.tool_calls or [])
        ]

        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return Completion(text=message.content, tool_calls=tool_calls, usage=usage)

    async def close(self) -> None:
        """Close the underlying OpenAI client."""
        try:
            await self._client.close()
        except Exception as e:
            logger.debug("Error closing OpenAI client: %s", e)
