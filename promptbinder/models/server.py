"""
Data models for remote tool/prompt server configuration.

Defines the structure of the YAML server registry that maps friendly
server names to a transport and its launch or connection details.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TransportType(Enum):
    """Supported transports for reaching a tool/prompt server."""

    STDIO = "stdio"
    STREAMABLE_HTTP = "streamable_http"
    SSE = "sse"


@dataclass
class ServerConfig:
    """Connection details for a single tool/prompt server."""

    name: str
    transport: TransportType
    command: Optional[str] = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    cwd: Optional[str] = None
    url: Optional[str] = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def address(self) -> str:
        """Human-readable address used in logs."""
        if self.transport is TransportType.STDIO:
            return " ".join([self.command or "", *self.args]).strip()
        return self.url or ""


@dataclass
class ServersConfiguration:
    """Top-level configuration containing all registered servers."""

    version: str
    servers: dict[str, ServerConfig] = field(default_factory=dict)
