"""
Adapter from an ``mcp.ClientSession`` to the ToolServer contract.

Converts MCP tool, prompt and tool-result types into PromptBinder's data
model and classifies prompt lookup errors into "not registered" versus
everything else.
"""

import json
import logging
from typing import Any, Optional

from mcp import ClientSession
from mcp.shared.exceptions import McpError
from mcp.types import (
    CallToolResult,
    EmbeddedResource,
    GetPromptResult,
    ServerCapabilities,
    TextContent,
    TextResourceContents,
)

from ..exceptions import PromptNotFound
from ..models import (
    ContentBlock,
    PromptMessage,
    PromptResult,
    ToolCallResult,
    ToolDescriptor,
)

logger = logging.getLogger(__name__)

# Phrases servers use when a prompt name is not registered.
_NOT_FOUND_MARKERS = ("unknown prompt", "prompt not found")


def is_prompt_not_found(error: McpError) -> bool:
    """Whether an MCP error reports an unregistered prompt name."""
    message = (error.error.message or "").lower()
    return any(marker in message for marker in _NOT_FOUND_MARKERS)


def stringify_prompt_arguments(arguments: dict[str, Any]) -> dict[str, str]:
    """MCP prompt arguments are string-valued; JSON-encode everything else."""
    return {
        key: value if isinstance(value, str) else json.dumps(value)
        for key, value in arguments.items()
    }


def convert_prompt_result(result: GetPromptResult) -> PromptResult:
    """Convert an MCP prompt result into ordered ``{role, text}`` pairs."""
    messages = []
    for message in result.messages:
        content = message.content
        if isinstance(content, TextContent):
            text = content.text
        elif isinstance(content, EmbeddedResource) and isinstance(
            content.resource, TextResourceContents
        ):
            text = content.resource.text
        else:
            logger.debug(
                "Skipping non-text prompt content of type '%s'",
                getattr(content, "type", type(content).__name__),
            )
            continue
        messages.append(PromptMessage(role=message.role, text=text))
    return PromptResult(messages=tuple(messages), description=result.description or "")


def convert_content_block(block: Any) -> ContentBlock:
    """Convert one MCP content block into a ContentBlock."""
    block_type = getattr(block, "type", "unknown")
    if block_type == "text":
        return ContentBlock.of_text(block.text)
    if block_type in ("image", "audio"):
        return ContentBlock(type=block_type, mime_type=block.mimeType, data=block.data)
    if block_type == "resource":
        resource = block.resource
        return ContentBlock(
            type="resource",
            text=getattr(resource, "text", None),
            mime_type=resource.mimeType,
            uri=str(resource.uri),
        )
    if block_type == "resource_link":
        return ContentBlock(type="resource_link", uri=str(block.uri))
    return ContentBlock(type=block_type)


def convert_tool_result(call_id: str, result: CallToolResult) -> ToolCallResult:
    """Convert an MCP tool result into a ToolCallResult."""
    return ToolCallResult(
        id=call_id,
        content=tuple(convert_content_block(block) for block in result.content),
        is_error=bool(result.isError),
    )


class McpToolServer:
    """ToolServer backed by an initialised MCP client session."""

    def __init__(
        self,
        session: ClientSession,
        capabilities: Optional[ServerCapabilities] = None,
    ):
        self._session = session
        self._capabilities = capabilities

    @property
    def supports_prompts(self) -> bool:
        """True unless the server's capabilities say it has no prompts."""
        if self._capabilities is None:
            return True
        return self._capabilities.prompts is not None

    async def list_tools(self) -> list[ToolDescriptor]:
        result = await self._session.list_tools()
        return [
            ToolDescriptor(
                name=tool.name,
                description=tool.description,
                parameter_schema=tool.inputSchema,
            )
            for tool in result.tools
        ]

    async def list_prompts(self) -> Optional[list[str]]:
        if not self.supports_prompts:
            return None
        result = await self._session.list_prompts()
        return [prompt.name for prompt in result.prompts]

    async def get_prompt(self, name: str, arguments: dict[str, Any]) -> PromptResult:
        try:
            result = await self._session.get_prompt(
                name, arguments=stringify_prompt_arguments(arguments)
            )
        except McpError as e:
            if is_prompt_not_found(e):
                raise PromptNotFound(name) from e
            raise
        return convert_prompt_result(result)

    async def call_tool(
        self, name: str, arguments: dict[str, Any], call_id: str
    ) -> ToolCallResult:
        result = await self._session.call_tool(name, arguments=arguments)
        if result.isError:
            logger.warning("Tool '%s' reported an error result", name)
        return convert_tool_result(call_id, result)
