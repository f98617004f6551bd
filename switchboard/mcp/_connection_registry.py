import threading
import time
from typing import TYPE_CHECKING, Dict, List, Optional

from switchboard.types import ServerConfig, ServerInfo

if TYPE_CHECKING:
    from switchboard.mcp._mcp_server_connection import McpServerConnection
    from switchboard.mcp._transport import Transport


class ConnectionHandle:
    """
    The runtime pairing of a connected protocol client and its transport for one server id.

    Handles are created by the supervisor on a successful connect and live only inside a
    `ConnectionRegistry`. They are never persisted.
    """

    server_id: str
    """The id of the server this handle is connected to."""

    config: ServerConfig
    """The configuration the connection was made with."""

    client: "McpServerConnection"
    """The connected protocol client."""

    transport: "Transport"
    """The transport the client is connected over."""

    fallback_used: bool
    """Whether the connection came from the SSE fallback of an http config."""

    connected_at: float
    """Epoch seconds at which the connection was established."""

    def __init__(
        self,
        config: ServerConfig,
        client: "McpServerConnection",
        transport: "Transport",
        *,
        fallback_used: bool = False,
    ):
        self.server_id = config.id
        self.config = config
        self.client = client
        self.transport = transport
        self.fallback_used = fallback_used
        self.connected_at = time.time()

    @property
    def server_info(self) -> Optional[ServerInfo]:
        return self.client.server_info

    async def close(self) -> List[Exception]:
        """
        Close the client, then the transport.

        Both steps are always attempted; failures are collected and returned rather than
        raised so that teardown never fails the operation that triggered it.

        Returns
        -------
        List[Exception]
            The errors raised by the close steps, empty when both succeeded.
        """
        errors: List[Exception] = []
        try:
            await self.client.close()
        except Exception as ex:
            errors.append(ex)
        try:
            await self.transport.close()
        except Exception as ex:
            errors.append(ex)
        return errors

    def __repr__(self) -> str:
        return f"ConnectionHandle(server_id={self.server_id!r}, transport={self.transport.kind!r})"


class ConnectionRegistry:
    """
    Map from server id to its live `ConnectionHandle`.

    The registry holds no business logic. Each operation is atomic, so concurrent
    operations on different ids are safe; operations on the same id are ordered by the
    caller. `put` replaces an existing entry without closing it: closing the previous
    handle is the caller's job.
    """

    _lock: threading.Lock
    _handles: Dict[str, ConnectionHandle]

    def __init__(self):
        self._lock = threading.Lock()
        self._handles = {}

    def put(self, server_id: str, handle: ConnectionHandle) -> None:
        with self._lock:
            self._handles[server_id] = handle

    def get(self, server_id: str) -> Optional[ConnectionHandle]:
        """
        Return the handle of the server, or None if the server is not connected.
        """
        with self._lock:
            return self._handles.get(server_id)

    def remove(self, server_id: str, handle: Optional[ConnectionHandle] = None) -> bool:
        """
        Remove the handle of the server.

        Parameters
        ----------
        server_id : str
            The id of the server.
        handle : Optional[ConnectionHandle]
            If given, the entry is removed only while it is still this handle, so a caller
            cleaning up a stale handle cannot remove a newer connection for the same id.

        Returns
        -------
        bool
            Whether an entry was removed.
        """
        with self._lock:
            current = self._handles.get(server_id)
            if current is None:
                return False
            if handle is not None and current is not handle:
                return False
            del self._handles[server_id]
            return True

    def list_ids(self) -> List[str]:
        with self._lock:
            return list(self._handles.keys())

    def __contains__(self, server_id: str) -> bool:
        with self._lock:
            return server_id in self._handles

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)
