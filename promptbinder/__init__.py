"""
PromptBinder - LLM tool calling with per-tool prompt injection

This package provides:
- Tool discovery from a remote tool/prompt server
- Naming-convention binding of prompts to tools (``tool:<name>``)
- An orchestration loop that injects a tool's prompt before running it
- Interactive CLI for testing
"""

from .client import PromptBinderClient
from .exceptions import (
    CompletionError,
    ConversationError,
    DiscoveryError,
    PromptBinderError,
    ServerConnectionError,
    ToolExecutionError,
)
from .llm_call import CompletionClient
from .orchestration import ConversationState, OrchestrationLoop

__all__ = [
    "PromptBinderClient",
    "CompletionClient",
    "ConversationState",
    "OrchestrationLoop",
    "PromptBinderError",
    "ServerConnectionError",
    "DiscoveryError",
    "ToolExecutionError",
    "CompletionError",
    "ConversationError",
]

__version__ = "0.1.0"
