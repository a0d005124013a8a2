"""
Data models for PromptBinder.
"""

from .conversation import (
    ContentBlock,
    ConversationTurn,
    Role,
    ToolCallRequest,
    ToolCallResult,
)
from .prompts import PromptMessage, PromptRequest, PromptResult
from .server import ServerConfig, ServersConfiguration, TransportType
from .tools import ToolCatalogEntry, ToolDescriptor, empty_parameter_schema

__all__ = [
    # Conversation models
    "ContentBlock",
    "ConversationTurn",
    "Role",
    "ToolCallRequest",
    "ToolCallResult",
    # Prompt models
    "PromptMessage",
    "PromptRequest",
    "PromptResult",
    # Tool models
    "ToolCatalogEntry",
    "ToolDescriptor",
    "empty_parameter_schema",
    # Server models
    "ServerConfig",
    "ServersConfiguration",
    "TransportType",
]
