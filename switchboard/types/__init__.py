"""
Data model and error taxonomy shared by all Switchboard modules.
"""

from switchboard.types._error import (
    SwitchboardError,
    ConfigError,
    UnsupportedTransportError,
    ConnectionErrorKind,
    McpServerConnectionError,
    ConnectionTimeoutError,
    ServerConnectionRefusedError,
    HostNotFoundError,
    TransportProtocolError,
    AuthenticationError,
    TransportFallbackExhaustedError,
    NotConnectedError,
    ToolNotConnectedError,
    ToolCallError,
)
from switchboard.types._server import (
    TransportKind,
    ServerConfig,
    ServerInfo,
    ConnectedServerSnapshot,
)
from switchboard.types._content import (
    TextContentItem,
    ImageContentItem,
    ResourceContentItem,
    ContentItem,
    ToolCallResult,
    FunctionCall,
)

__all__ = [
    "SwitchboardError",
    "ConfigError",
    "UnsupportedTransportError",
    "ConnectionErrorKind",
    "McpServerConnectionError",
    "ConnectionTimeoutError",
    "ServerConnectionRefusedError",
    "HostNotFoundError",
    "TransportProtocolError",
    "AuthenticationError",
    "TransportFallbackExhaustedError",
    "NotConnectedError",
    "ToolNotConnectedError",
    "ToolCallError",
    "TransportKind",
    "ServerConfig",
    "ServerInfo",
    "ConnectedServerSnapshot",
    "TextContentItem",
    "ImageContentItem",
    "ResourceContentItem",
    "ContentItem",
    "ToolCallResult",
    "FunctionCall",
]
