"""
Server registry loader for PromptBinder.

Loads named tool/prompt server definitions from a YAML file with support
for environment variable interpolation, e.g.::

    version: "1.0"
    servers:
      weather:
        transport: stdio
        command: python
        args: ["servers/weather.py"]
        env:
          WEATHER_API_KEY: ${WEATHER_API_KEY}
      docs:
        transport: streamable_http
        url: ${DOCS_SERVER_URL:-http://localhost:8000/mcp}
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from .config import config
from .models import ServerConfig, ServersConfiguration, TransportType

logger = logging.getLogger(__name__)

# Relative to the working directory
DEFAULT_SERVERS_CONFIG_PATH = "servers.yaml"

# Regex for environment variable interpolation: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def resolve_env_vars(value: str) -> str:
    """
    Resolve environment variable references in a string.

    Supports ${VAR} and ${VAR:-default} syntax.

    Args:
        value: String potentially containing env var references

    Returns:
        String with env vars resolved
    """

    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, value)


def _substitute_env_vars_recursive(data: Any) -> Any:
    """Recursively substitute environment variables in a data structure."""
    if isinstance(data, dict):
        return {k: _substitute_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    return data


def _parse_server(name: str, data: dict) -> ServerConfig:
    """Parse a single server definition from dict."""
    transport_str = data.get("transport", "stdio")
    try:
        transport = TransportType(transport_str)
    except ValueError:
        raise ValueError(f"Unknown transport: {transport_str}")

    return ServerConfig(
        name=name,
        transport=transport,
        command=data.get("command"),
        args=[str(arg) for arg in data.get("args", [])],
        env={k: str(v) for k, v in (data.get("env") or {}).items()},
        cwd=data.get("cwd"),
        url=data.get("url"),
        headers={k: str(v) for k, v in (data.get("headers") or {}).items()},
    )


def load_servers_config(path: Optional[str] = None) -> ServersConfiguration:
    """
    Load the server registry from a YAML file.

    Args:
        path: Path to the YAML file. If None, uses PROMPTBINDER_SERVERS_PATH
              or ``servers.yaml`` in the working directory.

    Returns:
        ServersConfiguration with all servers loaded

    Raises:
        ValueError: If the file is not valid YAML or a server definition is invalid
    """
    if path is None:
        path = config.servers.servers_config_path or DEFAULT_SERVERS_CONFIG_PATH

    config_path = Path(path)

    if not config_path.exists():
        logger.warning("Servers config not found at %s, using empty config", config_path)
        return ServersConfiguration(version="1.0", servers={})

    logger.debug("Loading servers config from %s", config_path)

    with open(config_path, "r") as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    if raw_config is None:
        return ServersConfiguration(version="1.0", servers={})

    raw_config = _substitute_env_vars_recursive(raw_config)
    version = str(raw_config.get("version", "1.0"))
    servers_data = raw_config.get("servers") or {}

    servers = {}
    for name, server_data in servers_data.items():
        try:
            servers[name] = _parse_server(name, server_data or {})
            logger.debug("Loaded server: %s -> %s", name, servers[name].address)
        except Exception as e:
            logger.error("Failed to parse server '%s': %s", name, e)
            raise ValueError(f"Invalid server configuration for '{name}': {e}") from e

    return ServersConfiguration(version=version, servers=servers)


def validate_servers_config(servers_config: ServersConfiguration) -> list[str]:
    """
    Validate a server registry.

    Args:
        servers_config: Configuration to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    for name, server in servers_config.servers.items():
        if server.transport is TransportType.STDIO:
            if not server.command:
                errors.append(f"Server '{name}': stdio transport requires a command")
        else:
            if not server.url:
                errors.append(f"Server '{name}': {server.transport.value} transport requires a url")
            elif not server.url.startswith(("http://", "https://")):
                errors.append(f"Server '{name}': url must start with http:// or https://")

    return errors
