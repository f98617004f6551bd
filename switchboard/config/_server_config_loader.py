"""
Loading server configurations from a JSON file.

Three layouts are accepted:

- a top-level list of server configs;
- an object with a `servers` list;
- the common `mcpServers` mapping keyed by server id, as written by most MCP hosts.
"""

import json
import os
from typing import Any, Dict, List

from pydantic import ValidationError

from switchboard.types import ConfigError, ServerConfig


def _infer_transport(entry: Dict[str, Any]) -> Dict[str, Any]:
    if any(key in entry for key in ("transport", "transport_kind", "transportKind")):
        return entry
    if entry.get("command"):
        return {**entry, "transport": "stdio"}
    if entry.get("url"):
        return {**entry, "transport": "http"}
    return entry


def parse_server_configs(data: Any, source: str = "<memory>") -> List[ServerConfig]:
    """
    Parse server configurations from already decoded JSON data.

    Parameters
    ----------
    data : Any
        The decoded JSON document.
    source : str
        Where the data came from, used in error messages.

    Returns
    -------
    List[ServerConfig]
        The parsed configurations, in document order.

    Raises
    ------
    ConfigError
        If the layout is not recognized or an entry is invalid.
    """
    if isinstance(data, dict) and isinstance(data.get("mcpServers"), dict):
        entries = [
            {"id": server_id, **(entry or {})}
            for server_id, entry in data["mcpServers"].items()
        ]
    elif isinstance(data, dict) and isinstance(data.get("servers"), list):
        entries = data["servers"]
    elif isinstance(data, list):
        entries = data
    else:
        raise ConfigError(
            f"Unrecognized server configuration layout in {source}: "
            f"expected a list, a 'servers' list or an 'mcpServers' mapping"
        )

    configs: List[ServerConfig] = []
    seen_ids = set()
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigError(f"Server entry #{index} in {source} is not an object")
        try:
            config = ServerConfig.model_validate(_infer_transport(entry))
        except ValidationError as ex:
            raise ConfigError(f"Invalid server entry #{index} in {source}: {ex}") from ex
        if config.id in seen_ids:
            raise ConfigError(f"Duplicate server id '{config.id}' in {source}")
        seen_ids.add(config.id)
        configs.append(config)
    return configs


def load_server_configs(path: str) -> List[ServerConfig]:
    """
    Load server configurations from a JSON file.

    Parameters
    ----------
    path : str
        Path of the JSON file.

    Returns
    -------
    List[ServerConfig]
        The parsed configurations, in file order.

    Raises
    ------
    ConfigError
        If the file is missing, is not valid JSON or contains invalid entries.
    """
    if not os.path.exists(path):
        raise ConfigError(f"Server configuration file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as ex:
        raise ConfigError(f"Failed to parse server configuration file {path}: {ex}") from ex
    return parse_server_configs(data, source=path)
