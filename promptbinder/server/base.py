"""
The contract a remote tool/prompt server must satisfy.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from ..models import PromptResult, ToolCallResult, ToolDescriptor


@runtime_checkable
class ToolServer(Protocol):
    """
    Remote interface consumed by the orchestration core.

    ``get_prompt`` raises ``PromptNotFound`` when no prompt is registered
    under ``name``; any other exception is a lookup failure.
    ``list_prompts`` returns None when the server does not advertise
    prompts at all.
    """

    async def list_tools(self) -> list[ToolDescriptor]: ...

    async def list_prompts(self) -> Optional[list[str]]: ...

    async def get_prompt(self, name: str, arguments: dict[str, Any]) -> PromptResult: ...

    async def call_tool(
        self, name: str, arguments: dict[str, Any], call_id: str
    ) -> ToolCallResult: ...
