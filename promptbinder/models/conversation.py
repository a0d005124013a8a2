"""
Conversation turns and the tool-call records they carry.

A turn is one role-tagged unit of context. Assistant turns may carry
tool-call requests (with or without accompanying text); tool turns carry
the result content for exactly one request, linked by ``tool_call_id``.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Role(Enum):
    """Roles a conversation turn can take."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ContentBlock:
    """A typed block of tool-result content."""

    type: str
    text: Optional[str] = None
    mime_type: Optional[str] = None
    data: Optional[str] = None
    uri: Optional[str] = None

    @classmethod
    def of_text(cls, text: str) -> "ContentBlock":
        return cls(type="text", text=text)

    def as_text(self) -> str:
        """Render the block as text for the LLM."""
        if self.text is not None:
            return self.text
        if self.type == "image":
            return f"[image: {self.mime_type or 'unknown'}]"
        if self.type == "audio":
            return f"[audio: {self.mime_type or 'unknown'}]"
        if self.uri:
            return f"[resource: {self.uri}]"
        return f"[{self.type} content]"


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool invocation requested by the LLM."""

    id: str
    tool_name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    def to_openai(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {
                "name": self.tool_name,
                "arguments": json.dumps(self.arguments),
            },
        }


@dataclass(frozen=True)
class ToolCallResult:
    """The content a server returned for one tool invocation."""

    id: str
    content: tuple[ContentBlock, ...] = ()
    is_error: bool = False

    @property
    def text(self) -> str:
        return "\n".join(block.as_text() for block in self.content)


@dataclass(frozen=True)
class ConversationTurn:
    """
    One role-tagged unit of context.

    Text and tool calls may both be present on an assistant turn; either
    may be empty. Tool turns carry ``tool_call_id`` and ``content``.
    """

    role: Role
    text: Optional[str] = None
    tool_calls: tuple[ToolCallRequest, ...] = ()
    tool_call_id: Optional[str] = None
    content: tuple[ContentBlock, ...] = ()

    @classmethod
    def system(cls, text: str) -> "ConversationTurn":
        return cls(role=Role.SYSTEM, text=text)

    @classmethod
    def user(cls, text: str) -> "ConversationTurn":
        return cls(role=Role.USER, text=text)

    @classmethod
    def assistant(
        cls,
        text: Optional[str] = None,
        tool_calls: tuple[ToolCallRequest, ...] = (),
    ) -> "ConversationTurn":
        return cls(role=Role.ASSISTANT, text=text, tool_calls=tuple(tool_calls))

    @classmethod
    def tool_result(cls, result: ToolCallResult) -> "ConversationTurn":
        return cls(
            role=Role.TOOL,
            tool_call_id=result.id,
            content=tuple(result.content),
        )

    @classmethod
    def from_role(cls, role: str, text: str) -> "ConversationTurn":
        """Build a plain text turn from a role name (used for prompt messages)."""
        return cls(role=Role(role), text=text)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_message(self) -> dict[str, Any]:
        """Render as an OpenAI chat message."""
        if self.role is Role.TOOL:
            return {
                "role": "tool",
                "tool_call_id": self.tool_call_id,
                "content": "\n".join(block.as_text() for block in self.content),
            }

        message: dict[str, Any] = {"role": self.role.value, "content": self.text}
        if self.tool_calls:
            message["tool_calls"] = [call.to_openai() for call in self.tool_calls]
        elif message["content"] is None:
            message["content"] = ""
        return message
