"""
Prompt resolution for tool calls.

Each tool may be backed by a prompt on the server. The binding between a
tool name and a prompt key is made by a PromptKeyMapper; the default is
the ``tool:<name>`` naming convention. Lookups yield one of three
outcomes: the prompt was found, no prompt is registered, or the lookup
failed. The dispatcher treats the last two the same way, but failures are
logged at WARNING and kept on ``PromptResolver.diagnostics``.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Union

from ..exceptions import PromptNotFound
from ..models import PromptRequest, PromptResult
from ..server import ToolServer
from ..tracing import TracingContext

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_KEY_PREFIX = "tool:"


def tool_name_to_prompt_key(name: str, prefix: str = DEFAULT_PROMPT_KEY_PREFIX) -> str:
    """Prompt key for a tool under the naming convention (case-sensitive, verbatim)."""
    return f"{prefix}{name}"


class PromptKeyMapper(Protocol):
    """Maps a tool name to the key of the prompt bound to it, if any."""

    def prompt_key_for(self, tool_name: str) -> Optional[str]: ...


class PrefixPromptKeys:
    """Binds tool ``T`` to the prompt named ``<prefix>T``."""

    def __init__(self, prefix: str = DEFAULT_PROMPT_KEY_PREFIX):
        self.prefix = prefix

    def prompt_key_for(self, tool_name: str) -> Optional[str]:
        return tool_name_to_prompt_key(tool_name, self.prefix)


class TablePromptKeys:
    """Binds tools to prompts through an explicit table."""

    def __init__(self, table: dict[str, str]):
        self._table = dict(table)
        self._reverse = {key: name for name, key in self._table.items()}

    def prompt_key_for(self, tool_name: str) -> Optional[str]:
        return self._table.get(tool_name)

    def tool_for_prompt_key(self, key: str) -> Optional[str]:
        return self._reverse.get(key)


@dataclass(frozen=True)
class PromptFound:
    key: str
    result: PromptResult


@dataclass(frozen=True)
class PromptAbsent:
    key: Optional[str]


@dataclass(frozen=True)
class PromptLookupFailed:
    key: str
    tool_name: str
    error: Exception


PromptLookup = Union[PromptFound, PromptAbsent, PromptLookupFailed]


def lookup_result(lookup: PromptLookup) -> Optional[PromptResult]:
    """The prompt result if one was found, else None."""
    if isinstance(lookup, PromptFound):
        return lookup.result
    return None


class PromptResolver:
    """
    Looks up the prompt bound to a tool call.

    ``resolve`` never raises and never touches the conversation: it returns
    a PromptLookup that the dispatcher acts on.
    """

    def __init__(
        self,
        server: ToolServer,
        key_mapper: Optional[PromptKeyMapper] = None,
        known_prompts: Optional[Iterable[str]] = None,
        tracing_context: Optional[TracingContext] = None,
    ):
        self._server = server
        self.key_mapper = key_mapper or PrefixPromptKeys()
        self.tracing_context = tracing_context
        self.diagnostics: list[PromptLookupFailed] = []
        self._known_prompts: Optional[frozenset[str]] = None
        if known_prompts is not None:
            self.set_known_prompts(known_prompts)

    def set_known_prompts(self, names: Optional[Iterable[str]]) -> None:
        """
        Record the prompt names the server advertises.

        When set, keys outside this set resolve as absent without a round
        trip. None means unknown, so every key is looked up remotely.
        """
        self._known_prompts = frozenset(names) if names is not None else None

    async def resolve(self, request: PromptRequest) -> PromptLookup:
        """
        Resolve the prompt bound to ``request.tool_name``.

        The call arguments are passed to the server verbatim.
        """
        key = self.key_mapper.prompt_key_for(request.tool_name)
        if key is None:
            logger.debug("No prompt binding for tool '%s'", request.tool_name)
            return PromptAbsent(key=None)

        if self._known_prompts is not None and key not in self._known_prompts:
            logger.info("No prompt '%s' registered, skipping injection", key)
            return PromptAbsent(key=key)

        if self.tracing_context:
            with self.tracing_context.span(
                name=f"prompt:{key}", input=dict(request.arguments)
            ) as span:
                lookup = await self._fetch(key, request)
                span.set_output({"outcome": type(lookup).__name__})
                if isinstance(lookup, PromptLookupFailed):
                    span.set_status("error")
                return lookup

        return await self._fetch(key, request)

    async def _fetch(self, key: str, request: PromptRequest) -> PromptLookup:
        try:
            result = await self._server.get_prompt(key, dict(request.arguments))
        except PromptNotFound:
            logger.info("No prompt '%s' registered, skipping injection", key)
            return PromptAbsent(key=key)
        except Exception as e:
            failure = PromptLookupFailed(key=key, tool_name=request.tool_name, error=e)
            self.diagnostics.append(failure)
            logger.warning(
                "Prompt lookup for '%s' failed, continuing without injection: %s",
                key,
                e,
            )
            return failure

        logger.debug("Resolved prompt '%s' with %d message(s)", key, len(result))
        return PromptFound(key=key, result=result)
