"""
Error taxonomy for PromptBinder.

Everything raised across module boundaries derives from PromptBinderError
so callers can catch the whole family in one place. Prompt-lookup problems
are deliberately absent from the public surface: the resolver turns them
into an absent prompt and reports them through logging and diagnostics.
"""

from typing import Optional


class PromptBinderError(Exception):
    """Base class for all PromptBinder errors."""


class ServerConnectionError(PromptBinderError, ConnectionError):
    """Connecting to or initialising a tool/prompt server failed."""


class DiscoveryError(PromptBinderError):
    """Listing the server's tools failed; no partial catalog is used."""


class ToolExecutionError(PromptBinderError):
    """A remote tool invocation failed at the transport or protocol level."""

    def __init__(self, message: str, tool_name: str, call_id: Optional[str] = None):
        self.tool_name = tool_name
        self.call_id = call_id
        super().__init__(message)


class CompletionError(PromptBinderError):
    """The LLM completion call failed."""


class ConversationError(PromptBinderError):
    """The conversation log was used in a way that breaks its invariants."""


class PromptNotFound(PromptBinderError):
    """
    The server has no prompt registered under the requested key.

    Raised by server adapters and consumed by the prompt resolver; it never
    reaches callers of the orchestration loop.
    """

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No prompt registered under '{key}'")
