"""
Sequential dispatch of the tool calls from one LLM response.

For each request, in the order the LLM listed them:
    1. Resolve the prompt bound to the tool, using the call's arguments
    2. Execute the tool on the server
    3. Append the prompt's messages (if found), then the tool result
       correlated by the request id

A call whose tool fails appends nothing, not even its prompt.

Requests are never run concurrently: a later request's prompt lookup and
result must land after every turn appended for the earlier ones.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..exceptions import ToolExecutionError
from ..models import (
    ConversationTurn,
    PromptRequest,
    ToolCallRequest,
    ToolCallResult,
)
from ..server import ToolServer
from ..tracing import TracingContext
from .conversation import ConversationState
from .prompts import PromptLookup, PromptResolver, lookup_result

logger = logging.getLogger(__name__)

# Cap on error text carried in exceptions and logs.
MAX_ERROR_CHARS = 500


@dataclass
class DispatchedCall:
    """Record of one processed tool-call request."""

    request: ToolCallRequest
    prompt: PromptLookup
    result: ToolCallResult

    @property
    def injected_messages(self) -> int:
        found = lookup_result(self.prompt)
        return len(found) if found is not None else 0


class ToolCallDispatcher:
    """Runs a batch of ToolCallRequests against the server."""

    def __init__(
        self,
        server: ToolServer,
        resolver: PromptResolver,
        tracing_context: Optional[TracingContext] = None,
    ):
        self._server = server
        self.resolver = resolver
        self.tracing_context = tracing_context

    async def dispatch(
        self,
        requests: Sequence[ToolCallRequest],
        state: ConversationState,
    ) -> list[DispatchedCall]:
        """
        Process ``requests`` in order, extending ``state``.

        Raises:
            ToolExecutionError: If a tool invocation fails. Remaining
                requests are not processed; turns already appended for
                earlier requests stay in ``state``, and nothing is
                appended for the failing one.
        """
        dispatched: list[DispatchedCall] = []
        for request in requests:
            dispatched.append(await self._dispatch_one(request, state))
        return dispatched

    async def _dispatch_one(
        self, request: ToolCallRequest, state: ConversationState
    ) -> DispatchedCall:
        lookup = await self.resolver.resolve(
            PromptRequest(tool_name=request.tool_name, arguments=request.arguments)
        )
        prompt = lookup_result(lookup)
        prompt_turns = (
            [ConversationTurn.from_role(m.role, m.text) for m in prompt.messages]
            if prompt is not None
            else []
        )

        if self.tracing_context:
            with self.tracing_context.span(
                name=f"tool:{request.tool_name}",
                input=dict(request.arguments),
                metadata={"call_id": request.id},
            ) as span:
                try:
                    result = await self._execute(request)
                except ToolExecutionError:
                    span.set_status("error")
                    raise
                span.set_output({"result": result.text[:MAX_ERROR_CHARS]})
                if result.is_error:
                    span.set_status("error")
        else:
            result = await self._execute(request)

        # Prompt turns are held until the tool has run, so a failed call
        # leaves neither its prompt nor its result in the log.
        for turn in prompt_turns:
            state.append(turn)
        if prompt_turns:
            logger.debug(
                "Injected %d prompt message(s) before '%s'", len(prompt_turns), request.tool_name
            )
        state.append(ConversationTurn.tool_result(result))
        return DispatchedCall(request=request, prompt=lookup, result=result)

    async def _execute(self, request: ToolCallRequest) -> ToolCallResult:
        logger.debug("Executing tool '%s' (call %s)", request.tool_name, request.id)
        try:
            result = await self._server.call_tool(
                request.tool_name, dict(request.arguments), request.id
            )
        except Exception as e:
            error_msg = str(e)
            if len(error_msg) > MAX_ERROR_CHARS:
                error_msg = error_msg[:MAX_ERROR_CHARS] + "..."
            logger.error("Tool '%s' execution failed: %s", request.tool_name, error_msg)
            raise ToolExecutionError(
                f"Tool '{request.tool_name}' execution failed: {error_msg}",
                tool_name=request.tool_name,
                call_id=request.id,
            ) from e

        if result.id != request.id:
            result = ToolCallResult(id=request.id, content=result.content, is_error=result.is_error)
        return result
