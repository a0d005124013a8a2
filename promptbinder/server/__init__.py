"""
Remote tool/prompt server access.
"""

from .base import ToolServer
from .mcp_server import McpToolServer
from .transports import open_session, resolve_server_address

__all__ = [
    "ToolServer",
    "McpToolServer",
    "open_session",
    "resolve_server_address",
]
