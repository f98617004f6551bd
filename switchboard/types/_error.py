from enum import Enum
from typing import Optional


class SwitchboardError(Exception):
    """
    Base class of every error raised by Switchboard.
    """
    pass

###########################################################
# Configuration Errors
###########################################################

class ConfigError(SwitchboardError, ValueError):
    """
    Raised when a server configuration is malformed or incomplete for its transport kind.
    Raised before any process is started or any network request is made.
    """
    pass

class UnsupportedTransportError(ConfigError):
    """
    Raised when a server configuration names a transport kind that is not supported.
    """
    pass

###########################################################
# Connection Errors
###########################################################

class ConnectionErrorKind(str, Enum):
    """
    User-actionable categories of a failed connection attempt.
    """
    TIMEOUT = "timeout"
    CONNECTION_REFUSED = "connection_refused"
    HOST_NOT_FOUND = "host_not_found"
    TRANSPORT_PROTOCOL_ERROR = "transport_protocol_error"
    AUTHENTICATION_ERROR = "authentication_error"


class McpServerConnectionError(SwitchboardError):
    """
    Raised when a connection to an MCP server could not be established.
    """
    kind: ConnectionErrorKind = ConnectionErrorKind.TRANSPORT_PROTOCOL_ERROR

    def __init__(self, message: str, *, kind: Optional[ConnectionErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind

class ConnectionTimeoutError(McpServerConnectionError, TimeoutError):
    """
    Raised when the server does not complete the connection handshake within the connect bound.
    """
    kind = ConnectionErrorKind.TIMEOUT

class ServerConnectionRefusedError(McpServerConnectionError):
    """
    Raised when the server actively refuses the connection.
    """
    kind = ConnectionErrorKind.CONNECTION_REFUSED

class HostNotFoundError(McpServerConnectionError):
    """
    Raised when the host name of the server URL cannot be resolved.
    """
    kind = ConnectionErrorKind.HOST_NOT_FOUND

class TransportProtocolError(McpServerConnectionError):
    """
    Raised when the transport could be opened but the protocol exchange over it failed.
    """
    kind = ConnectionErrorKind.TRANSPORT_PROTOCOL_ERROR

class AuthenticationError(McpServerConnectionError):
    """
    Raised when the server rejects the credentials or headers sent with the connection.
    """
    kind = ConnectionErrorKind.AUTHENTICATION_ERROR

class TransportFallbackExhaustedError(McpServerConnectionError):
    """
    Raised when both the streamable HTTP attempt and its SSE fallback failed.
    """

    primary_error: McpServerConnectionError
    fallback_error: McpServerConnectionError

    def __init__(self, primary_error: McpServerConnectionError, fallback_error: McpServerConnectionError):
        super().__init__(
            f"HTTP and SSE connection both failed: {primary_error} | SSE fallback: {fallback_error}",
            kind=fallback_error.kind,
        )
        self.primary_error = primary_error
        self.fallback_error = fallback_error

###########################################################
# Invocation Errors
###########################################################

class NotConnectedError(SwitchboardError):
    """
    Raised when an operation targets a server id that has no live connection.
    """
    pass

ToolNotConnectedError = NotConnectedError

class ToolCallError(SwitchboardError):
    """
    Raised when a tool call, prompt render or resource read fails on an established connection.
    """
    pass
