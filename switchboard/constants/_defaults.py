"""
Fixed defaults of the connection manager.
"""

DEFAULT_CONNECT_TIMEOUT = 30.0
"""Seconds a single connect attempt (primary or fallback) may take."""

DEFAULT_REQUEST_TIMEOUT = 30.0
"""Seconds the protocol session waits for any single response."""

DEFAULT_CLIENT_NAME = "switchboard"
"""Client name announced to servers during initialization."""

DEFAULT_REDACTED_PREFIX_LENGTH = 4
"""Characters of a credential kept visible when echoing headers for diagnostics."""

SUPPORTED_TRANSPORTS = ("stdio", "sse", "http")
"""Transport kinds accepted in a server configuration."""

UNKNOWN_SERVER_NAME = "Unknown"
"""Server name and version reported in snapshots of failed connections."""
