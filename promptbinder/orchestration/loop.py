"""
Per-query orchestration loop.

State machine::

    IDLE -> AWAITING_FIRST_COMPLETION
         -> (no tool calls)  -> DONE
         -> (tool calls)     -> DISPATCHING -> AWAITING_FINAL_COMPLETION
                                 ^                       |
                                 +---- (tool calls) -----+
                                         -> (no tool calls) -> DONE

Each completion is sent the full conversation snapshot and the same tool
catalog with ``tool_choice="auto"``. A follow-up completion that requests
more tools starts another dispatch round, up to ``max_rounds``.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..config import config
from ..llm_call import Completion, CompletionClient
from ..models import ConversationTurn, ToolCallRequest
from ..tracing import TracingContext
from .catalog import ToolCatalog
from .conversation import ConversationState
from .dispatcher import DispatchedCall, ToolCallDispatcher
from .prompts import PromptFound, PromptLookupFailed

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """Where the loop is within one query."""

    IDLE = "idle"
    AWAITING_FIRST_COMPLETION = "awaiting_first_completion"
    DISPATCHING = "dispatching"
    AWAITING_FINAL_COMPLETION = "awaiting_final_completion"
    DONE = "done"


@dataclass
class OrchestrationRound:
    """One dispatched batch of tool calls."""

    round_number: int
    requests: list[ToolCallRequest] = field(default_factory=list)
    calls: list[DispatchedCall] = field(default_factory=list)


@dataclass
class OrchestrationResult:
    """Result from a complete query."""

    answer: str
    rounds: list[OrchestrationRound] = field(default_factory=list)
    tools_used: list[str] = field(default_factory=list)
    turns_appended: int = 0


class OrchestrationLoop:
    """
    Drives completions and tool dispatch for a query.

    The loop holds the conversation as its single writer for the whole of
    ``run``; issuing a second query against the same ConversationState
    before the first returns raises ConversationError.

    A query with no tool calls appends two turns (user, assistant) and one
    with a single prompted tool call appends five. When a system prompt is
    configured, the first query on an empty conversation also appends a
    leading system turn that is not part of those counts.
    """

    def __init__(
        self,
        completion_client: CompletionClient,
        catalog: ToolCatalog,
        dispatcher: ToolCallDispatcher,
        state: Optional[ConversationState] = None,
        max_rounds: Optional[int] = None,
        system_prompt: Optional[str] = None,
        tracing_context: Optional[TracingContext] = None,
    ):
        self._llm = completion_client
        self.catalog = catalog
        self.dispatcher = dispatcher
        self.conversation = state if state is not None else ConversationState()
        self.max_rounds = (
            max_rounds if max_rounds is not None else config.orchestration.max_tool_rounds
        )
        self.system_prompt = (
            system_prompt if system_prompt is not None else config.orchestration.system_prompt
        )
        self.tracing_context = tracing_context
        self.loop_state = LoopState.IDLE
        self.rounds: list[OrchestrationRound] = []

    async def process_query(self, text: str) -> str:
        """Run the loop for ``text`` and return the final answer text."""
        result = await self.run(text)
        return result.answer

    async def run(self, query: str) -> OrchestrationResult:
        """
        Run the loop for a query.

        Raises:
            CompletionError: If either completion call fails.
            ToolExecutionError: If a tool invocation fails mid-batch.
        """
        self.rounds = []
        self.loop_state = LoopState.IDLE
        logger.debug("Starting orchestration for: %s", query)

        if self.tracing_context:
            return await self._run_with_tracing(query)
        return await self._run_loop(query)

    async def _run_with_tracing(self, query: str) -> OrchestrationResult:
        """Run the loop inside a root tracing span."""
        self.tracing_context.start_trace(query=query)
        try:
            result = await self._run_loop(query)
        except Exception as e:
            self.tracing_context.end_trace(output=str(e), status="error")
            raise
        self.tracing_context.end_trace(output=result.answer)
        return result

    async def _run_loop(self, query: str) -> OrchestrationResult:
        with self.conversation.exclusive():
            start = len(self.conversation)
            tools = self.catalog.to_openai_tools()

            if self.system_prompt and start == 0:
                self.conversation.append(ConversationTurn.system(self.system_prompt))
            self.conversation.append(ConversationTurn.user(query))

            self.loop_state = LoopState.AWAITING_FIRST_COMPLETION
            completion = await self._complete(tools, step=1)

            while completion.has_tool_calls:
                if len(self.rounds) >= self.max_rounds:
                    logger.warning(
                        "Max tool rounds (%d) reached, dropping %d unanswered tool call(s)",
                        self.max_rounds,
                        len(completion.tool_calls),
                    )
                    break
                await self._dispatch_round(completion)
                self.loop_state = LoopState.AWAITING_FINAL_COMPLETION
                completion = await self._complete(tools, step=len(self.rounds) + 1)

            answer = completion.text or ""
            self.conversation.append(ConversationTurn.assistant(answer))
            self.loop_state = LoopState.DONE

            result = OrchestrationResult(
                answer=answer,
                rounds=list(self.rounds),
                tools_used=self._unique_tools_used(),
                turns_appended=len(self.conversation) - start,
            )
        self._log_trace_summary(result)
        return result

    async def _complete(self, tools: list[dict], step: int) -> Completion:
        logger.debug("Completion %d: %d turn(s) in context", step, len(self.conversation))
        return await self._llm.complete(
            self.conversation.to_messages(),
            tools=tools,
            tracing_context=self.tracing_context,
            name=f"completion_{step}",
        )

    async def _dispatch_round(self, completion: Completion) -> None:
        """Record the assistant's tool-call turn and dispatch its requests in order."""
        round_ = OrchestrationRound(
            round_number=len(self.rounds) + 1,
            requests=list(completion.tool_calls),
        )
        self.rounds.append(round_)
        self.conversation.append(
            ConversationTurn.assistant(completion.text, tuple(completion.tool_calls))
        )
        self.loop_state = LoopState.DISPATCHING
        round_.calls = await self.dispatcher.dispatch(completion.tool_calls, self.conversation)

    def _unique_tools_used(self) -> list[str]:
        seen: list[str] = []
        for round_ in self.rounds:
            for call in round_.calls:
                if call.request.tool_name not in seen:
                    seen.append(call.request.tool_name)
        return seen

    def _log_trace_summary(self, result: OrchestrationResult) -> None:
        """Log a compact trace summary."""
        logger.info(
            "Query done: %d round(s), %d turn(s) appended, tools: %s",
            len(result.rounds),
            result.turns_appended,
            ", ".join(result.tools_used) or "-",
        )
        for round_ in result.rounds:
            for call in round_.calls:
                if isinstance(call.prompt, PromptFound):
                    prompt_note = f"prompt '{call.prompt.key}' ({call.injected_messages} msg)"
                elif isinstance(call.prompt, PromptLookupFailed):
                    prompt_note = f"prompt '{call.prompt.key}' FAILED"
                else:
                    prompt_note = "no prompt"
                preview = call.result.text
                if len(preview) > 80:
                    preview = preview[:80] + "..."
                logger.info(
                    "Round %d: %s [%s] -> %s",
                    round_.round_number,
                    call.request.tool_name,
                    prompt_note,
                    preview,
                )

    def get_trace(self) -> list[dict]:
        """
        Get a trace of the rounds from the last query.

        Returns:
            List of round dictionaries.
        """
        return [
            {
                "round": r.round_number,
                "calls": [
                    {
                        "id": c.request.id,
                        "tool": c.request.tool_name,
                        "arguments": c.request.arguments,
                        "prompt": getattr(c.prompt, "key", None),
                        "prompt_status": type(c.prompt).__name__,
                        "injected_messages": c.injected_messages,
                        "result": c.result.text,
                        "is_error": c.result.is_error,
                    }
                    for c in r.calls
                ],
            }
            for r in self.rounds
        ]
