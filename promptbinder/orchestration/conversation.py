"""
Append-only conversation log.

The log is the single source of truth for what the LLM sees: its order is
the order of the context sent on each completion call. Turns are never
removed or reordered here; windowing is left to whoever owns the state.

Single-writer invariant: while a query is being processed, the loop holds
``exclusive()`` and no other query may mutate the same state.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from ..exceptions import ConversationError
from ..models import ConversationTurn, Role

logger = logging.getLogger(__name__)


class ConversationState:
    """Ordered, append-only sequence of ConversationTurns."""

    def __init__(self, turns: Optional[list[ConversationTurn]] = None):
        self._turns: list[ConversationTurn] = []
        # Tool-call ids requested by the latest tool-calling assistant turn and
        # not yet answered. Plain assistant text (e.g. an injected prompt
        # message) does not open or close a round.
        self._pending_calls: set[str] = set()
        self._writer: Optional[str] = None
        for turn in turns or []:
            self.append(turn)

    def append(self, turn: ConversationTurn) -> None:
        """
        Append a turn.

        Raises:
            ConversationError: If a tool turn does not answer a pending
                tool-call request from the latest assistant turn.
        """
        if turn.role is Role.TOOL:
            if turn.tool_call_id not in self._pending_calls:
                raise ConversationError(
                    f"Tool result '{turn.tool_call_id}' does not match any pending "
                    "tool-call request"
                )
            self._pending_calls.discard(turn.tool_call_id)
        elif turn.role is Role.ASSISTANT and turn.tool_calls:
            if self._pending_calls:
                logger.debug(
                    "Assistant turn appended with %d unanswered tool call(s)",
                    len(self._pending_calls),
                )
            self._pending_calls = {call.id for call in turn.tool_calls}

        self._turns.append(turn)

    def snapshot(self) -> tuple[ConversationTurn, ...]:
        """Immutable view of the turns in order."""
        return tuple(self._turns)

    def to_messages(self) -> list[dict[str, Any]]:
        """Render the turns as OpenAI chat messages, preserving order."""
        return [turn.to_message() for turn in self._turns]

    @property
    def pending_tool_calls(self) -> frozenset[str]:
        return frozenset(self._pending_calls)

    @contextmanager
    def exclusive(self, owner: str = "query") -> Iterator["ConversationState"]:
        """
        Hold the state as its single writer for the duration of the block.

        Raises:
            ConversationError: If another owner already holds the state.
        """
        if self._writer is not None:
            raise ConversationError(
                f"Conversation is already being written by '{self._writer}'"
            )
        self._writer = owner
        try:
            yield self
        finally:
            self._writer = None

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(tuple(self._turns))

    def __getitem__(self, index):
        return self._turns[index]
