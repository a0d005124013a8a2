"""
Server address resolution and transport setup.

An address is either a name from the YAML server registry, an HTTP(S)
URL, or a path to a Python or Node.js server script launched over stdio.
"""

import logging
import sys
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client
from mcp.types import InitializeResult

from ..exceptions import ServerConnectionError
from ..models import ServerConfig, ServersConfiguration, TransportType

logger = logging.getLogger(__name__)


def resolve_server_address(
    address: str,
    registry: Optional[ServersConfiguration] = None,
) -> ServerConfig:
    """
    Turn a user-supplied address into a ServerConfig.

    Args:
        address: Registry name, URL, or ``.py``/``.js`` script path.
        registry: Optional server registry consulted first.

    Raises:
        ServerConnectionError: If the address cannot be interpreted.
    """
    if not address or not address.strip():
        raise ServerConnectionError("Server address is empty")

    if registry and address in registry.servers:
        return registry.servers[address]

    if address.startswith(("http://", "https://")):
        transport = (
            TransportType.SSE
            if address.rstrip("/").endswith("/sse")
            else TransportType.STREAMABLE_HTTP
        )
        return ServerConfig(name=address, transport=transport, url=address)

    suffix = Path(address).suffix
    if suffix == ".py":
        command = sys.executable
    elif suffix == ".js":
        command = "node"
    else:
        raise ServerConnectionError(
            f"Cannot interpret server address '{address}': expected a registered "
            "server name, an http(s) URL, or a .py/.js script path"
        )

    return ServerConfig(
        name=Path(address).stem,
        transport=TransportType.STDIO,
        command=command,
        args=[address],
    )


async def open_session(
    stack: AsyncExitStack, server: ServerConfig
) -> tuple[ClientSession, InitializeResult]:
    """
    Open the transport for ``server`` on ``stack`` and initialise a session.

    Everything entered here is closed when ``stack`` is closed.
    """
    logger.debug("Opening %s transport to %s", server.transport.value, server.address)

    if server.transport is TransportType.STDIO:
        params = StdioServerParameters(
            command=server.command,
            args=server.args,
            env=server.env or None,
            cwd=server.cwd,
        )
        read, write = await stack.enter_async_context(stdio_client(params))
    elif server.transport is TransportType.SSE:
        read, write = await stack.enter_async_context(
            sse_client(server.url, headers=server.headers or None)
        )
    else:
        read, write, _ = await stack.enter_async_context(
            streamablehttp_client(server.url, headers=server.headers or None)
        )

    session = await stack.enter_async_context(ClientSession(read, write))
    init_result = await session.initialize()
    return session, init_result
