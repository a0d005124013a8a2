"""Fakes for the tool/prompt server and the completion client."""

from typing import Any, Optional
from unittest.mock import AsyncMock

from promptbinder.exceptions import PromptNotFound
from promptbinder.llm_call import Completion
from promptbinder.models import (
    ContentBlock,
    PromptMessage,
    PromptResult,
    ToolCallRequest,
    ToolCallResult,
    ToolDescriptor,
)


class FakeToolServer:
    """In-memory ToolServer that records every call in ``events``."""

    def __init__(
        self,
        tools: Optional[list[ToolDescriptor]] = None,
        prompts: Optional[dict[str, Any]] = None,
        tool_results: Optional[dict[str, Any]] = None,
        advertise_prompts: bool = False,
    ):
        self.tools = tools or []
        # name -> PromptResult, or an Exception instance to raise
        self.prompts = prompts or {}
        # name -> text result, or an Exception instance to raise
        self.tool_results = tool_results or {}
        self.advertise_prompts = advertise_prompts
        self.list_tools_error: Optional[Exception] = None
        self.events: list[tuple] = []

    async def list_tools(self) -> list[ToolDescriptor]:
        self.events.append(("list_tools",))
        if self.list_tools_error is not None:
            raise self.list_tools_error
        return list(self.tools)

    async def list_prompts(self) -> Optional[list[str]]:
        if not self.advertise_prompts:
            return None
        return [
            name for name, value in self.prompts.items()
            if not isinstance(value, Exception)
        ]

    async def get_prompt(self, name: str, arguments: dict[str, Any]) -> PromptResult:
        self.events.append(("get_prompt", name, dict(arguments)))
        if name not in self.prompts:
            raise PromptNotFound(name)
        value = self.prompts[name]
        if isinstance(value, Exception):
            raise value
        return value

    async def call_tool(
        self, name: str, arguments: dict[str, Any], call_id: str
    ) -> ToolCallResult:
        self.events.append(("call_tool", name, dict(arguments)))
        value = self.tool_results.get(name, f"{name} ok")
        if isinstance(value, Exception):
            raise value
        return ToolCallResult(id=call_id, content=(ContentBlock.of_text(value),))


def make_prompt(*messages: tuple[str, str]) -> PromptResult:
    """Build a PromptResult from (role, text) pairs."""
    return PromptResult(
        messages=tuple(PromptMessage(role=role, text=text) for role, text in messages)
    )


def text_completion(text: str) -> Completion:
    return Completion(text=text)


def tool_completion(*calls: tuple[str, str, dict], text: Optional[str] = None) -> Completion:
    """Completion requesting tools from (id, name, arguments) triples."""
    return Completion(
        text=text,
        tool_calls=[
            ToolCallRequest(id=call_id, tool_name=name, arguments=args)
            for call_id, name, args in calls
        ],
    )


def scripted_llm(*completions: Completion) -> AsyncMock:
    """A CompletionClient stand-in returning ``completions`` in order."""
    llm = AsyncMock()
    llm.model = "test-model"
    llm.complete = AsyncMock(side_effect=list(completions))
    return llm
