"""Tests for server address resolution."""

import sys

import pytest

from promptbinder.exceptions import ServerConnectionError
from promptbinder.models import ServerConfig, ServersConfiguration, TransportType
from promptbinder.server.transports import resolve_server_address


class TestResolveServerAddress:
    def test_python_script(self):
        server = resolve_server_address("servers/weather.py")
        assert server.transport is TransportType.STDIO
        assert server.command == sys.executable
        assert server.args == ["servers/weather.py"]
        assert server.name == "weather"

    def test_node_script(self):
        server = resolve_server_address("build/index.js")
        assert server.command == "node"
        assert server.args == ["build/index.js"]

    def test_http_url(self):
        server = resolve_server_address("http://localhost:8000/mcp")
        assert server.transport is TransportType.STREAMABLE_HTTP
        assert server.url == "http://localhost:8000/mcp"

    def test_sse_url(self):
        server = resolve_server_address("https://example.org/sse/")
        assert server.transport is TransportType.SSE

    def test_registry_name_takes_precedence(self):
        registered = ServerConfig(name="weather", transport=TransportType.STDIO, command="uv")
        registry = ServersConfiguration(version="1.0", servers={"weather": registered})
        assert resolve_server_address("weather", registry) is registered

    @pytest.mark.parametrize("address", ["", "   ", "weather", "server.rb"])
    def test_unusable_address(self, address):
        with pytest.raises(ServerConnectionError):
            resolve_server_address(address)

    def test_connection_error_is_builtin_connection_error(self):
        with pytest.raises(ConnectionError):
            resolve_server_address("server.rb")
