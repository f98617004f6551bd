"""
The MCP module is the connection manager of Switchboard: it establishes, supervises and
multiplexes connections to MCP (Model Context Protocol) servers. It provides:

- **Transports**: A closed set of transport variants (stdio, SSE and streamable HTTP) built
  and validated from a server configuration before any process or network activity
- **Connection Lifecycle**: The connection supervisor, which enforces the connect timeout, falls
  back from streamable HTTP to SSE, supersedes previous connections for the same server and keeps
  live connections in a registry
- **Capability Discovery**: Listing of tools, prompts and resources, where a capability a server
  does not implement never fails the others
- **Invocation**: Tool calls, prompt renders and resource reads, with their heterogeneous payloads
  normalized into content items

Synchronous callers drive the same machinery through `SyncConnectionSupervisor`, which runs every
operation on one dedicated event loop thread.
"""

from switchboard.mcp._transport import (
    StdioTransport,
    SseTransport,
    StreamableHttpTransport,
    Transport,
    build_transport,
    build_fallback_transport,
)
from switchboard.mcp._mcp_server_connection import McpServerConnection
from switchboard.mcp._connection_registry import ConnectionHandle, ConnectionRegistry
from switchboard.mcp._error_classifier import classify_connection_error, describe_exception
from switchboard.mcp._capability_discoverer import CapabilityDiscoverer, DiscoveryResult
from switchboard.mcp._tool_invoker import (
    ToolInvoker,
    normalize_content,
    normalize_content_item,
    normalize_prompt_message,
    normalize_resource_content,
    stringify_prompt_arguments,
)
from switchboard.mcp._connection_supervisor import ConnectionSupervisor
from switchboard.mcp._function_executor import FunctionExecutor, ImagePublisher
from switchboard.mcp._loop_runner import LoopRunner
from switchboard.mcp._sync_supervisor import SyncConnectionSupervisor

__all__ = [
    "StdioTransport",
    "SseTransport",
    "StreamableHttpTransport",
    "Transport",
    "build_transport",
    "build_fallback_transport",
    "McpServerConnection",
    "ConnectionHandle",
    "ConnectionRegistry",
    "classify_connection_error",
    "describe_exception",
    "CapabilityDiscoverer",
    "DiscoveryResult",
    "ToolInvoker",
    "normalize_content",
    "normalize_content_item",
    "normalize_prompt_message",
    "normalize_resource_content",
    "stringify_prompt_arguments",
    "ConnectionSupervisor",
    "FunctionExecutor",
    "ImagePublisher",
    "LoopRunner",
    "SyncConnectionSupervisor",
]
