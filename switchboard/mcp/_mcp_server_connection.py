import asyncio
from contextlib import AsyncExitStack
from datetime import timedelta
from typing import Any, Dict, Optional

from mcp.client.session import ClientSession
from mcp.types import (
    CallToolResult,
    GetPromptResult,
    Implementation,
    InitializeResult,
    ListPromptsResult,
    ListResourcesResult,
    ListToolsResult,
    ReadResourceResult,
)

from switchboard.config import SwitchboardSetting
from switchboard.logging import get_connection_logger
from switchboard.mcp._transport import Transport
from switchboard.types import McpServerConnectionError, NotConnectedError, ServerInfo

logger = get_connection_logger(source="McpServerConnection")


class McpServerConnection:
    """
    A protocol client for one MCP server.

    The client connects over a `Transport` and exposes the capability set of the protocol:
    listing tools, prompts and resources, calling tools, rendering prompts and reading
    resources.

    The transport streams and the `ClientSession` are anyio contexts that must be entered
    and exited by the same task. The client therefore runs them in a dedicated owner task:
    `connect()` starts the task and waits until the session is initialized, and `close()`
    asks the task to leave its contexts and waits for it to finish. Requests issued from
    any task of the same event loop go through the session held by the owner task.

    Methods
    -------
    connect
        Open the transport and initialize the session.
    close
        Shut the session down and release the transport.
    """

    name: str
    """The name of the connected MCP server."""

    request_timeout: float
    """The timeout in seconds for the requests to the MCP server."""

    client_info: Implementation
    """The client name and version announced to the server."""

    _session: Optional[ClientSession]
    """The session that is used to interact with the MCP server."""

    _owner_task: Optional[asyncio.Task]
    """The task that owns the transport streams and the session."""

    _closing: Optional[asyncio.Event]
    """Set to ask the owner task to shut the session down."""

    _server_info: Optional[ServerInfo]
    """Server information reported during initialization."""

    _termination_error: Optional[BaseException]
    """The error that ended an established session, if any."""

    _close_error: Optional[BaseException]
    """The error raised while the session was shutting down on request, if any."""

    def __init__(
        self,
        name: str,
        *,
        request_timeout: Optional[float] = None,
        client_name: Optional[str] = None,
        client_version: Optional[str] = None,
    ):
        setting = SwitchboardSetting.read()
        self.name = name
        self.request_timeout = request_timeout or setting.request_timeout
        self.client_info = Implementation(
            name=client_name or setting.client_name,
            version=client_version or setting.client_version,
        )
        self._session = None
        self._owner_task = None
        self._closing = None
        self._server_info = None
        self._termination_error = None
        self._close_error = None

    @property
    def is_connected(self) -> bool:
        """
        Whether the session is initialized and its owner task is still running.
        """
        return (
            self._session is not None
            and self._owner_task is not None
            and not self._owner_task.done()
        )

    @property
    def server_info(self) -> Optional[ServerInfo]:
        return self._server_info

    @property
    def termination_error(self) -> Optional[BaseException]:
        return self._termination_error

    async def connect(self, transport: Transport) -> ServerInfo:
        """
        Open the transport and initialize the session.

        The call returns once the server has answered the initialize request. It has no
        deadline of its own; the caller bounds it (see `ConnectionSupervisor`). If the call
        is cancelled or fails, the owner task is cancelled and the transport released.

        Parameters
        ----------
        transport : Transport
            The transport to connect over.

        Returns
        -------
        ServerInfo
            The server information reported during initialization.

        Raises
        ------
        McpServerConnectionError
            If the client is already connected.
        Exception
            Whatever the transport or the session raised while connecting.
        """
        if self._owner_task is not None:
            raise McpServerConnectionError(f"MCP server connection '{self.name}' is already in use")

        ready: asyncio.Future = asyncio.get_running_loop().create_future()
        self._closing = asyncio.Event()
        self._owner_task = asyncio.create_task(
            self._run_session(transport, ready),
            name=f"mcp-session-{self.name}",
        )
        transport.attach(self._owner_task)

        try:
            init_result: InitializeResult = await ready
        except BaseException:
            self._owner_task.cancel()
            raise

        self._server_info = ServerInfo(
            name=init_result.serverInfo.name,
            version=init_result.serverInfo.version,
            capabilities=init_result.capabilities.model_dump(mode="json", exclude_none=True),
        )
        return self._server_info

    async def close(self) -> None:
        """
        Close the connection to the MCP server. Safe to call on a client that never
        connected or was already closed.
        """
        task = self._owner_task
        if task is None:
            return
        if self._closing is not None:
            self._closing.set()
        if not task.done():
            # The owner task may end cancelled; asyncio.wait never re-raises that here.
            await asyncio.wait({task}, timeout=self.request_timeout)
        self._session = None

        if not task.done():
            raise McpServerConnectionError(
                f"Timed out after {self.request_timeout:g} seconds closing MCP server connection '{self.name}'"
            )
        error = self._close_error
        if error is None and not task.cancelled():
            error = task.exception()
        if error is not None:
            self._close_error = None
            raise McpServerConnectionError(
                f"Error while closing MCP server connection '{self.name}': {error}"
            ) from error

    async def _run_session(self, transport: Transport, ready: asyncio.Future) -> None:
        try:
            async with AsyncExitStack() as stack:
                streams = await stack.enter_async_context(transport.open_streams())
                session = await stack.enter_async_context(
                    ClientSession(
                        read_stream=streams[0],
                        write_stream=streams[1],
                        read_timeout_seconds=timedelta(seconds=self.request_timeout),
                        client_info=self.client_info,
                    )
                )
                init_result = await session.initialize()
                self._session = session
                if ready.done():
                    return
                ready.set_result(init_result)
                await self._closing.wait()
        except Exception as ex:
            if not ready.done():
                ready.set_exception(ex)
            elif self._closing.is_set():
                self._close_error = ex
            else:
                self._termination_error = ex
                logger.warning(
                    "Session of MCP server '%s' terminated: %s", self.name, ex,
                )
        finally:
            self._session = None

    def _require_session(self) -> ClientSession:
        session = self._session
        if session is None or not self.is_connected:
            raise NotConnectedError(f"MCP server '{self.name}' is not connected")
        return session

    ###########################################################################
    # The capability set of the protocol.
    ###########################################################################

    async def list_tools(self) -> ListToolsResult:
        """
        List the tools from the MCP server.
        """
        return await self._require_session().list_tools()

    async def list_prompts(self) -> ListPromptsResult:
        """
        List the prompts from the MCP server.
        """
        return await self._require_session().list_prompts()

    async def list_resources(self) -> ListResourcesResult:
        """
        List the resources from the MCP server.
        """
        return await self._require_session().list_resources()

    async def call_tool(
        self,
        tool_name: str,
        arguments: Optional[Dict[str, Any]] = None,
    ) -> CallToolResult:
        """
        Call a tool on the MCP server.

        Parameters
        ----------
        tool_name : str
            The name of the tool to call.
        arguments : Optional[Dict[str, Any]]
            The arguments to pass to the tool. If None, an empty dictionary will be used.

        Returns
        -------
        CallToolResult
            The result of the tool call from the server.
        """
        return await self._require_session().call_tool(name=tool_name, arguments=arguments or {})

    async def get_prompt(
        self,
        prompt_name: str,
        arguments: Optional[Dict[str, str]] = None,
    ) -> GetPromptResult:
        """
        Render a prompt on the MCP server.

        Parameters
        ----------
        prompt_name : str
            The name of the prompt to render.
        arguments : Optional[Dict[str, str]]
            String arguments of the prompt.

        Returns
        -------
        GetPromptResult
            The rendered prompt messages.
        """
        return await self._require_session().get_prompt(name=prompt_name, arguments=arguments or {})

    async def read_resource(self, uri: str) -> ReadResourceResult:
        """
        Read a resource from the MCP server.
        """
        return await self._require_session().read_resource(uri)

    def __repr__(self) -> str:
        return f"McpServerConnection(name={self.name!r}, connected={self.is_connected})"
