"""
Tool catalog for the orchestration loop.

Discovers tools from the server and projects them into the OpenAI
function-calling shape handed to the LLM on every completion call.
"""

import logging
from typing import Optional

from ..exceptions import DiscoveryError
from ..models import ToolCatalogEntry
from ..server import ToolServer

logger = logging.getLogger(__name__)


class ToolCatalog:
    """
    Normalized view of the tools a server exposes.

    The catalog is replaced wholesale on every successful ``refresh()``;
    a failed refresh leaves the previous entries untouched.
    """

    def __init__(self, server: ToolServer):
        self._server = server
        self._entries: dict[str, ToolCatalogEntry] = {}

    async def refresh(self) -> list[ToolCatalogEntry]:
        """
        Re-run discovery against the server.

        Returns:
            The catalog entries, in the order the server listed them.
            An empty list when the server reports no tools.

        Raises:
            DiscoveryError: If the remote listing call fails.
        """
        try:
            descriptors = await self._server.list_tools()
        except Exception as e:
            logger.error("Tool discovery failed: %s", e)
            raise DiscoveryError(f"Tool discovery failed: {e}") from e

        entries: dict[str, ToolCatalogEntry] = {}
        for descriptor in descriptors:
            if descriptor.name in entries:
                logger.warning("Duplicate tool '%s' in listing, keeping the last", descriptor.name)
            entries[descriptor.name] = ToolCatalogEntry.from_descriptor(descriptor)

        self._entries = entries
        logger.info("Discovered %d tool(s): %s", len(entries), ", ".join(entries) or "-")
        return list(entries.values())

    def describe(self, name: str) -> Optional[ToolCatalogEntry]:
        """Get a catalog entry by tool name, or None if not found."""
        return self._entries.get(name)

    @property
    def entries(self) -> list[ToolCatalogEntry]:
        return list(self._entries.values())

    @property
    def names(self) -> list[str]:
        return list(self._entries)

    def to_openai_tools(self) -> list[dict]:
        """Render every entry as an OpenAI ``tools`` list element."""
        return [entry.to_openai_tool() for entry in self._entries.values()]

    def get_tools_summary(self) -> str:
        """Get formatted summary of all tools for display."""
        return "\n".join(
            f"- {entry.name}: {entry.description}" for entry in self._entries.values()
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries
