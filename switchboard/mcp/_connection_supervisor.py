import asyncio
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from switchboard.config import SwitchboardSetting
from switchboard.constants import UNKNOWN_SERVER_NAME
from switchboard.logging import describe_config_for_log, get_connection_logger
from switchboard.mcp._capability_discoverer import CapabilityDiscoverer, DiscoveryResult
from switchboard.mcp._connection_registry import ConnectionHandle, ConnectionRegistry
from switchboard.mcp._error_classifier import classify_connection_error
from switchboard.mcp._mcp_server_connection import McpServerConnection
from switchboard.mcp._tool_invoker import ToolInvoker
from switchboard.mcp._transport import Transport, build_fallback_transport, build_transport
from switchboard.types import (
    ConfigError,
    ConnectedServerSnapshot,
    ConnectionTimeoutError,
    McpServerConnectionError,
    ServerConfig,
    ServerInfo,
    ToolCallResult,
    TransportFallbackExhaustedError,
    UnsupportedTransportError,
)

logger = get_connection_logger(source="ConnectionSupervisor")

ClientFactory = Callable[[str], McpServerConnection]
"""Builds a fresh, unconnected protocol client for the server with the given id."""


class ConnectionSupervisor:
    """
    Orchestrates the connections to MCP servers.

    The supervisor connects, disconnects and describes servers, and routes tool, prompt
    and resource operations to their live connections. It enforces the connect bound,
    falls back from streamable HTTP to SSE, supersedes any previous connection for the
    same server id and classifies failures into actionable errors.

    Operations on different server ids may run concurrently. Operations on the same id
    are expected to be issued sequentially by the caller: concurrent `connect` and
    `disconnect` calls for one id race, and the registry ends in the state of whichever
    completes last.

    Parameters
    ----------
    registry : Optional[ConnectionRegistry]
        The registry to keep live connections in. A new registry is created if omitted.
    connect_timeout : Optional[float]
        Seconds a single connect attempt may take. Defaults to
        `SwitchboardSetting.connect_timeout` (30 seconds). Must be positive.
    client_factory : Optional[ClientFactory]
        Builds the protocol client of each connect attempt. Defaults to
        `McpServerConnection`.
    discoverer : Optional[CapabilityDiscoverer]
        Lists the capabilities of connected servers.

    Examples
    --------
    >>> supervisor = ConnectionSupervisor()
    >>> snapshot = await supervisor.connect(ServerConfig(id="fs", transport="stdio", command="mcp-fs"))
    >>> if snapshot.is_connected:
    ...     result = await supervisor.call_tool("fs", "list_dir", {"path": "."})
    """

    _registry: ConnectionRegistry
    _connect_timeout: float
    _client_factory: ClientFactory
    _discoverer: CapabilityDiscoverer
    _invoker: ToolInvoker

    def __init__(
        self,
        registry: Optional[ConnectionRegistry] = None,
        *,
        connect_timeout: Optional[float] = None,
        client_factory: Optional[ClientFactory] = None,
        discoverer: Optional[CapabilityDiscoverer] = None,
    ):
        self._registry = registry if registry is not None else ConnectionRegistry()
        if connect_timeout is None:
            connect_timeout = SwitchboardSetting.read().connect_timeout
        elif connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be positive, got {connect_timeout!r}")
        self._connect_timeout = connect_timeout
        self._client_factory = client_factory or McpServerConnection
        self._discoverer = discoverer or CapabilityDiscoverer()
        self._invoker = ToolInvoker(self._registry)

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def connect_timeout(self) -> float:
        return self._connect_timeout

    ###########################################################################
    # Connection lifecycle
    ###########################################################################

    async def connect(self, config: ServerConfig) -> ConnectedServerSnapshot:
        """
        Connect to a server, superseding any previous connection for its id.

        This method never raises for connection failures: they are reported in the
        returned snapshot with `is_connected=False` and a `last_error` message.

        Parameters
        ----------
        config : ServerConfig
            The configuration of the server.

        Returns
        -------
        ConnectedServerSnapshot
            The server information and capability listings on success, or the failure.
        """
        start = time.time()
        await self._release(config.id, reason="superseded")

        logger.info("Connecting to MCP server '%s' over %s", config.id, config.transport)
        logger.log_connect_start(
            server_id=config.id,
            server_name=config.name,
            transport=config.transport,
            config=describe_config_for_log(config),
        )

        try:
            transport = build_transport(config)
        except ConfigError as ex:
            kind = "unsupported_transport" if isinstance(ex, UnsupportedTransportError) else "config_error"
            return self._fail(config, kind, str(ex))

        fallback_used = False
        try:
            client, transport = await self._attempt(config, transport)
        except McpServerConnectionError as primary_error:
            fallback = build_fallback_transport(config)
            if fallback is None:
                return self._fail(config, primary_error.kind.value, str(primary_error))

            logger.warning(
                "Streamable HTTP connection to MCP server '%s' failed (%s); retrying over SSE",
                config.id, primary_error,
            )
            try:
                client, transport = await self._attempt(config, fallback)
            except McpServerConnectionError as fallback_error:
                error = TransportFallbackExhaustedError(primary_error, fallback_error)
                return self._fail(config, error.kind.value, str(error), fallback_attempted=True)
            fallback_used = True

        handle = ConnectionHandle(config, client, transport, fallback_used=fallback_used)
        self._registry.put(config.id, handle)

        discovery = await self._discoverer.discover(client)
        snapshot = self._snapshot(config, handle, discovery)

        logger.info(
            "Connected to MCP server '%s' over %s (%d tools, %d prompts, %d resources)",
            config.id, transport.kind, len(snapshot.tools), len(snapshot.prompts), len(snapshot.resources),
        )
        logger.log_connect_success(
            server_id=config.id,
            server_name=snapshot.info.name,
            transport=transport.kind,
            fallback_used=fallback_used,
            tool_count=len(snapshot.tools),
            prompt_count=len(snapshot.prompts),
            resource_count=len(snapshot.resources),
            execution_time=time.time() - start,
        )
        return snapshot

    async def disconnect(self, server_id: str) -> None:
        """
        Disconnect from a server.

        The client and the transport are both closed even if one of them fails to; close
        errors are logged, never raised. Disconnecting a server that is not connected is
        a no-op.
        """
        if not await self._release(server_id, reason="disconnect"):
            logger.warning("MCP server '%s' is already disconnected", server_id)

    async def disconnect_all(self) -> None:
        """
        Disconnect from every connected server.
        """
        await asyncio.gather(*(self.disconnect(server_id) for server_id in self._registry.list_ids()))

    async def describe(
        self,
        server_id: str,
        config: Optional[ServerConfig] = None,
    ) -> Optional[ConnectedServerSnapshot]:
        """
        Produce a fresh snapshot of a connected server.

        The capabilities are listed again against the live connection. A connection found
        dead, either because its session ended or because every listing failed without
        any answer from the server, is closed and removed, and None is returned.

        Parameters
        ----------
        server_id : str
            The id of the server.
        config : Optional[ServerConfig]
            The configuration to report in the snapshot. Defaults to the configuration
            the connection was made with.

        Returns
        -------
        Optional[ConnectedServerSnapshot]
            The snapshot, or None if the server is not connected.
        """
        handle = self._registry.get(server_id)
        if handle is None:
            return None

        if handle.client.is_connected:
            discovery = await self._discoverer.discover(handle.client)
            if not discovery.looks_dead and handle.client.is_connected:
                return self._snapshot(config or handle.config, handle, discovery)

        logger.warning("Connection to MCP server '%s' is dead; removing it", server_id)
        await self._close_handle(handle, reason="dead")
        return None

    ###########################################################################
    # Introspection
    ###########################################################################

    def list_ids(self) -> List[str]:
        return self._registry.list_ids()

    def is_connected(self, server_id: str) -> bool:
        handle = self._registry.get(server_id)
        return handle is not None and handle.client.is_connected

    ###########################################################################
    # Invocations
    ###########################################################################

    async def call_tool(
        self,
        server_id: str,
        tool_name: str,
        arguments: Optional[Dict[str, Any]] = None,
    ) -> ToolCallResult:
        return await self._invoker.call_tool(server_id, tool_name, arguments)

    async def get_prompt(
        self,
        server_id: str,
        prompt_name: str,
        arguments: Optional[Mapping[str, Any]] = None,
    ) -> ToolCallResult:
        return await self._invoker.get_prompt(server_id, prompt_name, arguments)

    async def read_resource(self, server_id: str, uri: str) -> ToolCallResult:
        return await self._invoker.read_resource(server_id, uri)

    ###########################################################################
    # Internals
    ###########################################################################

    async def _attempt(
        self,
        config: ServerConfig,
        transport: Transport,
    ) -> Tuple[McpServerConnection, Transport]:
        """
        One connect attempt over one transport, bounded by the connect timeout. On
        failure the client and the transport are released and a categorized error raised.
        """
        client = self._client_factory(config.id)
        try:
            await asyncio.wait_for(client.connect(transport), timeout=self._connect_timeout)
        except asyncio.TimeoutError as ex:
            await self._close_quietly(config.id, client, transport)
            raise ConnectionTimeoutError(
                f"Connection timed out after {self._connect_timeout:g} seconds: "
                f"{transport.target} did not complete the MCP handshake over {transport.kind}. "
                f"Check that the server is running."
            ) from ex
        except Exception as ex:
            await self._close_quietly(config.id, client, transport)
            attempt_config = config.model_copy(update={"transport": transport.kind})
            raise classify_connection_error(ex, attempt_config, timeout=self._connect_timeout) from ex
        return client, transport

    async def _close_quietly(
        self,
        server_id: str,
        client: McpServerConnection,
        transport: Transport,
    ) -> None:
        try:
            await client.close()
        except Exception as ex:
            logger.warning("Error closing client of MCP server '%s': %s", server_id, ex)
        try:
            await transport.close()
        except Exception as ex:
            logger.warning("Error closing %s transport of MCP server '%s': %s", transport.kind, server_id, ex)

    async def _close_handle(self, handle: ConnectionHandle, reason: str) -> None:
        errors = await handle.close()
        for error in errors:
            logger.warning("Error closing connection to MCP server '%s': %s", handle.server_id, error)
        self._registry.remove(handle.server_id, handle)
        logger.log_disconnect(server_id=handle.server_id, reason=reason, close_errors=len(errors))

    async def _release(self, server_id: str, reason: str) -> bool:
        handle = self._registry.get(server_id)
        if handle is None:
            return False
        await self._close_handle(handle, reason=reason)
        logger.info("Disconnected from MCP server '%s' (%s)", server_id, reason)
        return True

    def _fail(
        self,
        config: ServerConfig,
        error_kind: str,
        message: str,
        *,
        fallback_attempted: bool = False,
    ) -> ConnectedServerSnapshot:
        logger.error("Failed to connect to MCP server '%s': %s", config.id, message)
        logger.log_connect_failure(
            server_id=config.id,
            server_name=config.name,
            transport=config.transport,
            error_kind=error_kind,
            error_message=message,
            fallback_attempted=fallback_attempted,
        )
        return ConnectedServerSnapshot(
            config=config,
            info=ServerInfo(name=UNKNOWN_SERVER_NAME, version=UNKNOWN_SERVER_NAME),
            is_connected=False,
            last_error=message,
        )

    @staticmethod
    def _snapshot(
        config: ServerConfig,
        handle: ConnectionHandle,
        discovery: DiscoveryResult,
    ) -> ConnectedServerSnapshot:
        info = handle.server_info or ServerInfo(name=UNKNOWN_SERVER_NAME, version=UNKNOWN_SERVER_NAME)
        return ConnectedServerSnapshot(
            config=config,
            info=info,
            tools=discovery.tools,
            prompts=discovery.prompts,
            resources=discovery.resources,
            is_connected=True,
        )
