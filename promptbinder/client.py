"""
PromptBinder client: connects to a tool/prompt server and answers queries
with an LLM that can call the server's tools.

Usage::

    async with PromptBinderClient() as client:
        await client.connect("servers/weather.py")
        answer = await client.process_query("What's the weather in Paris?")
"""

import logging
import uuid
from contextlib import AsyncExitStack
from typing import Optional

from .config import config
from .config_loader import load_servers_config
from .exceptions import PromptBinderError, ServerConnectionError, ToolExecutionError
from .llm_call import CompletionClient
from .models import ContentBlock, ConversationTurn, ServersConfiguration, ToolCallResult
from .orchestration import (
    ConversationState,
    OrchestrationLoop,
    OrchestrationResult,
    PrefixPromptKeys,
    PromptKeyMapper,
    PromptResolver,
    ToolCallDispatcher,
    ToolCatalog,
)
from .server import McpToolServer, ToolServer, open_session, resolve_server_address
from .tracing import TracingContext

logger = logging.getLogger(__name__)


class PromptBinderClient:
    """
    Connection to one server plus the orchestration components bound to it.

    Each query gets a fresh ConversationState unless ``keep_history`` is
    set, in which case all queries share one log (multi-turn chat).
    """

    def __init__(
        self,
        completion_client: Optional[CompletionClient] = None,
        key_mapper: Optional[PromptKeyMapper] = None,
        max_rounds: Optional[int] = None,
        system_prompt: Optional[str] = None,
        keep_history: bool = False,
        servers_config: Optional[ServersConfiguration] = None,
    ):
        self._llm = completion_client
        self.key_mapper = key_mapper or PrefixPromptKeys(config.orchestration.prompt_key_prefix)
        self.max_rounds = max_rounds
        self.system_prompt = system_prompt
        self.keep_history = keep_history
        self._servers_config = servers_config

        self._exit_stack: Optional[AsyncExitStack] = None
        self.server: Optional[ToolServer] = None
        self.catalog: Optional[ToolCatalog] = None
        self.resolver: Optional[PromptResolver] = None
        self.conversation = ConversationState()
        self.last_loop: Optional[OrchestrationLoop] = None

    @property
    def connected(self) -> bool:
        return self.server is not None

    @property
    def completion_client(self) -> CompletionClient:
        if self._llm is None:
            self._llm = CompletionClient()
        return self._llm

    async def connect(self, server_address: str) -> None:
        """
        Connect to a server and discover its tools.

        Raises:
            ServerConnectionError: If the server registry cannot be loaded,
                the address is invalid, or the session cannot be established.
            DiscoveryError: If the tool listing fails.
        """
        if self.connected:
            await self.disconnect()

        servers_config = self._servers_config
        if servers_config is None:
            try:
                servers_config = load_servers_config()
            except (OSError, ValueError) as e:
                raise ServerConnectionError(f"Could not load server registry: {e}") from e
        server_config = resolve_server_address(server_address, servers_config)

        stack = AsyncExitStack()
        try:
            session, init_result = await open_session(stack, server_config)
        except Exception as e:
            await stack.aclose()
            raise ServerConnectionError(
                f"Failed to connect to '{server_config.address}': {e}"
            ) from e

        server = McpToolServer(session, capabilities=init_result.capabilities)
        try:
            await self.attach(server)
        except PromptBinderError:
            await stack.aclose()
            raise

        self._exit_stack = stack
        logger.info(
            "Connected to %s (%s) with tools: %s",
            init_result.serverInfo.name,
            server_config.address,
            ", ".join(self.catalog.names) or "-",
        )

    async def attach(self, server: ToolServer) -> None:
        """
        Bind the orchestration components to an already-open server.

        Raises:
            DiscoveryError: If the tool listing fails; nothing is attached.
        """
        catalog = ToolCatalog(server)
        await catalog.refresh()

        resolver = PromptResolver(server, key_mapper=self.key_mapper)
        try:
            resolver.set_known_prompts(await server.list_prompts())
        except Exception as e:
            logger.warning("Could not list prompts, resolving on demand: %s", e)

        self.server = server
        self.catalog = catalog
        self.resolver = resolver

    async def refresh_tools(self) -> None:
        """Re-run tool discovery on the connected server."""
        self._require_connection()
        await self.catalog.refresh()

    async def process_query(self, text: str) -> str:
        """Answer ``text``, calling tools as the LLM requests them."""
        result = await self.run_query(text)
        return result.answer

    async def run_query(self, text: str) -> OrchestrationResult:
        """Like process_query, but return the full OrchestrationResult."""
        self._require_connection()

        state = self.conversation if self.keep_history else ConversationState()
        self.conversation = state

        tracing_context = TracingContext(query_id=uuid.uuid4().hex[:12])
        if not tracing_context.enabled:
            tracing_context = None
        self.resolver.tracing_context = tracing_context

        loop = OrchestrationLoop(
            completion_client=self.completion_client,
            catalog=self.catalog,
            dispatcher=ToolCallDispatcher(
                self.server, self.resolver, tracing_context=tracing_context
            ),
            state=state,
            max_rounds=self.max_rounds,
            system_prompt=self.system_prompt,
            tracing_context=tracing_context,
        )
        self.last_loop = loop
        try:
            return await loop.run(text)
        except ToolExecutionError as e:
            if self.keep_history:
                self._close_unanswered_calls(state, e)
            raise

    def _close_unanswered_calls(self, state: ConversationState, error: ToolExecutionError) -> None:
        """
        Answer tool calls left open by a failed batch with error results.

        OpenAI-compatible APIs reject a history that holds an unanswered
        tool call, so the shared log must not keep one.
        """
        pending = state.pending_tool_calls
        if not pending:
            return
        requested = next(
            turn.tool_calls for turn in reversed(state.snapshot()) if turn.tool_calls
        )
        for call in requested:
            if call.id not in pending:
                continue
            state.append(
                ConversationTurn.tool_result(
                    ToolCallResult(
                        id=call.id,
                        content=(ContentBlock.of_text(f"Tool call not completed: {error}"),),
                        is_error=True,
                    )
                )
            )
        logger.warning(
            "Closed %d unanswered tool call(s) after failure in '%s'",
            len(pending),
            error.tool_name,
        )

    async def disconnect(self) -> None:
        """Close the server connection. Safe to call more than once."""
        stack, self._exit_stack = self._exit_stack, None
        self.server = None
        self.catalog = None
        self.resolver = None
        if stack is not None:
            await stack.aclose()
            logger.debug("Disconnected from server")

    async def close(self) -> None:
        """Disconnect and close the completion client."""
        await self.disconnect()
        if self._llm is not None:
            await self._llm.close()

    def _require_connection(self) -> None:
        if not self.connected:
            raise ServerConnectionError("Not connected to a server")

    async def __aenter__(self) -> "PromptBinderClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
