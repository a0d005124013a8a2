"""
Tool descriptors as discovered from a server, and their projection into
the OpenAI function-calling shape.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


def empty_parameter_schema() -> dict[str, Any]:
    """Schema for a tool that accepts an empty object."""
    return {"type": "object", "properties": {}}


@dataclass(frozen=True)
class ToolDescriptor:
    """A tool as reported by the server's tool listing."""

    name: str
    description: Optional[str] = None
    parameter_schema: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class ToolCatalogEntry:
    """A ToolDescriptor projected into the LLM function-calling shape."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=empty_parameter_schema)

    @classmethod
    def from_descriptor(cls, descriptor: ToolDescriptor) -> "ToolCatalogEntry":
        """
        Derive a catalog entry from a descriptor.

        A missing or blank description falls back to the tool name, and a
        missing parameter schema falls back to an empty object schema.
        """
        description = descriptor.description
        if not description or not description.strip():
            description = descriptor.name

        parameters = descriptor.parameter_schema
        if not parameters:
            parameters = empty_parameter_schema()

        return cls(
            name=descriptor.name,
            description=description,
            parameters=dict(parameters),
        )

    def to_openai_tool(self) -> dict[str, Any]:
        """Render as an OpenAI ``tools`` list element."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }
