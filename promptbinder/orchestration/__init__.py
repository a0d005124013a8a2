"""
Orchestration core: tool catalog, prompt resolution, conversation log,
tool-call dispatch and the per-query loop.
"""

from .catalog import ToolCatalog
from .conversation import ConversationState
from .dispatcher import DispatchedCall, ToolCallDispatcher
from .loop import (
    LoopState,
    OrchestrationLoop,
    OrchestrationResult,
    OrchestrationRound,
)
from .prompts import (
    PrefixPromptKeys,
    PromptAbsent,
    PromptFound,
    PromptKeyMapper,
    PromptLookup,
    PromptLookupFailed,
    PromptResolver,
    TablePromptKeys,
    tool_name_to_prompt_key,
)

__all__ = [
    "ToolCatalog",
    "ConversationState",
    "DispatchedCall",
    "ToolCallDispatcher",
    "LoopState",
    "OrchestrationLoop",
    "OrchestrationResult",
    "OrchestrationRound",
    "PrefixPromptKeys",
    "PromptAbsent",
    "PromptFound",
    "PromptKeyMapper",
    "PromptLookup",
    "PromptLookupFailed",
    "PromptResolver",
    "TablePromptKeys",
    "tool_name_to_prompt_key",
]
