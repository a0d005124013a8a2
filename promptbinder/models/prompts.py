"""
Prompt lookup requests and results.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PromptRequest:
    """The tool name and the exact arguments the LLM supplied for the call."""

    tool_name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PromptMessage:
    """One ``{role, text}`` pair produced by a prompt."""

    role: str
    text: str


@dataclass(frozen=True)
class PromptResult:
    """
    Messages returned by a successful prompt lookup.

    An empty ``messages`` tuple is a valid result (the prompt exists but has
    no content) and is distinct from the prompt not being found.
    """

    messages: tuple[PromptMessage, ...] = ()
    description: str = ""

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self):
        return iter(self.messages)
