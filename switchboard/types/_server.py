from enum import Enum
from typing import Any, Dict, List, Optional

from mcp.types import Prompt, Resource, Tool
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class TransportKind(str, Enum):
    """
    Transport kinds a server configuration may select.
    """
    STDIO = "stdio"
    SSE = "sse"
    HTTP = "http"


class ServerConfig(BaseModel):
    """
    Identity and connection parameters of one MCP server.

    The configuration is owned by the storage layer of the application; Switchboard only
    reads it. Which of the transport-specific fields are required depends on `transport`
    and is checked by the transport factory before any connection attempt, so a config
    naming an unknown transport can still be constructed and reported back to the caller.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    """Unique and stable identifier of the server."""

    name: str = ""
    """Human readable name of the server. Defaults to the id."""

    transport: str = Field(validation_alias=AliasChoices("transport", "transport_kind", "transportKind"))
    """The transport kind: 'stdio', 'sse' or 'http'."""

    command: Optional[str] = None
    """The command to launch (stdio)."""

    args: List[str] = Field(default_factory=list)
    """The arguments passed to the command (stdio)."""

    env: Dict[str, str] = Field(default_factory=dict)
    """Extra environment variables for the launched process (stdio)."""

    url: Optional[str] = None
    """The absolute URL of the server endpoint (sse/http)."""

    headers: Dict[str, str] = Field(default_factory=dict)
    """HTTP headers sent with every request (sse/http)."""

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name") and data.get("id"):
            data = {**data, "name": data["id"]}
        return data

    @field_validator("args", "env", "headers", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any, info) -> Any:
        if value is None:
            return [] if info.field_name == "args" else {}
        return value

    @field_validator("transport", mode="before")
    @classmethod
    def _normalize_transport(cls, value: Any) -> Any:
        if isinstance(value, TransportKind):
            return value.value
        if isinstance(value, str):
            return value.strip().lower()
        return value


class ServerInfo(BaseModel):
    """
    Server information as reported by the server during initialization.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    capabilities: Dict[str, Any] = Field(default_factory=dict)


class ConnectedServerSnapshot(BaseModel):
    """
    Point-in-time description of a server's connection state and capabilities.

    A snapshot is produced fresh by every connect or describe call and never updated
    afterwards.
    """
    model_config = ConfigDict(frozen=True)

    config: ServerConfig
    info: ServerInfo
    tools: List[Tool] = Field(default_factory=list)
    prompts: List[Prompt] = Field(default_factory=list)
    resources: List[Resource] = Field(default_factory=list)
    is_connected: bool = False
    last_error: Optional[str] = None
