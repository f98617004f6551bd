"""
Switchboard: a client-side connection manager for MCP (Model Context Protocol) servers.
"""

__version__ = "0.1.0"
