import asyncio
from contextlib import _AsyncGeneratorContextManager
from typing import Any, Dict, List, Literal, Optional, Union

import httpx
from mcp.client.sse import sse_client
from mcp.client.stdio import StdioServerParameters, stdio_client
from mcp.client.streamable_http import streamablehttp_client

from switchboard.constants import SUPPORTED_TRANSPORTS
from switchboard.types import ConfigError, ServerConfig, TransportKind, UnsupportedTransportError


class _TransportBase:
    """
    Bookkeeping shared by every transport variant.

    A transport only describes how to open the byte streams to a server. The streams are
    opened and owned by the session task of the protocol client that connects over the
    transport; the client attaches that task here so that `close()` can release the
    process or HTTP connection even when the client could not shut down cleanly.
    """

    _owner_task: Optional[asyncio.Task]
    _closed: bool

    def __init__(self):
        self._owner_task = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def attach(self, owner_task: asyncio.Task) -> None:
        if self._closed:
            raise RuntimeError(f"{type(self).__name__} has already been closed")
        self._owner_task = owner_task

    async def close(self) -> None:
        """
        Release the streams of this transport. Safe to call more than once.
        """
        self._closed = True
        task = self._owner_task
        self._owner_task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            # The owner task was cancelled by us; a cancellation of the caller itself must
            # still propagate.
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise

    def open_streams(self) -> _AsyncGeneratorContextManager[Any, None]:
        raise NotImplementedError


class StdioTransport(_TransportBase):
    """
    Transport over the stdin/stdout pipes of a launched server process.
    """

    kind: Literal["stdio"] = "stdio"

    command: str
    args: List[str]
    env: Dict[str, str]
    encoding: str

    def __init__(
        self,
        command: str,
        *,
        args: Optional[List[str]] = None,
        env: Optional[Dict[str, str]] = None,
        encoding: Optional[str] = None,
    ):
        super().__init__()
        self.command = command
        self.args = list(args or [])
        self.env = dict(env or {})
        self.encoding = encoding or "utf-8"

    def open_streams(self) -> _AsyncGeneratorContextManager[Any, None]:
        """
        Get the MCP client transport for stdio.

        Returns
        -------
        _AsyncGeneratorContextManager[Any, None]
            An async context manager yielding the read and write streams.
        """
        return stdio_client(server=StdioServerParameters(
            command=self.command,
            args=self.args,
            env=self.env,
            encoding=self.encoding,
        ))

    @property
    def target(self) -> str:
        return self.command

    def __repr__(self) -> str:
        return f"StdioTransport(command={self.command!r}, args_count={len(self.args)})"


class SseTransport(_TransportBase):
    """
    Transport over a Server-Sent Events stream plus a POST endpoint.
    """

    kind: Literal["sse"] = "sse"

    url: str
    headers: Dict[str, str]
    timeout: Optional[float]
    sse_read_timeout: Optional[float]

    def __init__(
        self,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        sse_read_timeout: Optional[float] = None,
    ):
        super().__init__()
        self.url = url
        self.headers = dict(headers or {})
        self.timeout = timeout
        self.sse_read_timeout = sse_read_timeout

    def open_streams(self) -> _AsyncGeneratorContextManager[Any, None]:
        """
        Get the MCP client transport for SSE.

        Returns
        -------
        _AsyncGeneratorContextManager[Any, None]
            An async context manager yielding the read and write streams.
        """
        start_args: Dict[str, Any] = {"url": self.url}
        if self.headers:
            start_args["headers"] = self.headers
        if self.timeout is not None:
            start_args["timeout"] = self.timeout
        if self.sse_read_timeout is not None:
            start_args["sse_read_timeout"] = self.sse_read_timeout
        return sse_client(**start_args)

    @property
    def target(self) -> str:
        return self.url

    def __repr__(self) -> str:
        return f"SseTransport(url={self.url!r})"


class StreamableHttpTransport(_TransportBase):
    """
    Transport over streamable HTTP.
    """

    kind: Literal["http"] = "http"

    url: str
    headers: Dict[str, str]
    timeout: Optional[float]
    sse_read_timeout: Optional[float]
    terminate_on_close: Optional[bool]

    def __init__(
        self,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        sse_read_timeout: Optional[float] = None,
        terminate_on_close: Optional[bool] = None,
    ):
        super().__init__()
        self.url = url
        self.headers = dict(headers or {})
        self.timeout = timeout
        self.sse_read_timeout = sse_read_timeout
        self.terminate_on_close = terminate_on_close

    def open_streams(self) -> _AsyncGeneratorContextManager[Any, None]:
        """
        Get the MCP client transport for streamable HTTP.

        Returns
        -------
        _AsyncGeneratorContextManager[Any, None]
            An async context manager yielding the read stream, the write stream and a
            session id getter.
        """
        start_args: Dict[str, Any] = {"url": self.url}
        if self.headers:
            start_args["headers"] = self.headers
        if self.timeout is not None:
            start_args["timeout"] = self.timeout
        if self.sse_read_timeout is not None:
            start_args["sse_read_timeout"] = self.sse_read_timeout
        if self.terminate_on_close is not None:
            start_args["terminate_on_close"] = self.terminate_on_close
        return streamablehttp_client(**start_args)

    @property
    def target(self) -> str:
        return self.url

    def __repr__(self) -> str:
        return f"StreamableHttpTransport(url={self.url!r})"


Transport = Union[StdioTransport, SseTransport, StreamableHttpTransport]
"""A transport of one of the supported kinds, discriminated by its `kind` attribute."""


def _validated_url(config: ServerConfig) -> str:
    if not config.url:
        raise ConfigError(f"{config.transport} transport requires a url (server '{config.id}')")
    try:
        parsed = httpx.URL(config.url)
    except (httpx.InvalidURL, TypeError) as ex:
        raise ConfigError(f"Invalid URL: {config.url}") from ex
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigError(f"Invalid URL: {config.url} (an absolute http(s) URL is required)")
    return config.url


def build_transport(config: ServerConfig) -> Transport:
    """
    Build the primary transport of a server configuration.

    Validation happens entirely before any process is launched or any request is sent;
    building a transport has no side effects.

    Parameters
    ----------
    config : ServerConfig
        The server configuration.

    Returns
    -------
    Transport
        A `StdioTransport`, `SseTransport` or `StreamableHttpTransport`.

    Raises
    ------
    ConfigError
        If a field required by the transport kind is missing or invalid.
    UnsupportedTransportError
        If the transport kind is not supported.
    """
    kind = config.transport
    if kind == TransportKind.STDIO.value:
        if not config.command or not config.command.strip():
            raise ConfigError(f"stdio transport requires a command (server '{config.id}')")
        return StdioTransport(
            command=config.command,
            args=config.args,
            env=config.env,
        )
    elif kind == TransportKind.SSE.value:
        return SseTransport(url=_validated_url(config), headers=config.headers)
    elif kind == TransportKind.HTTP.value:
        return StreamableHttpTransport(url=_validated_url(config), headers=config.headers)
    else:
        raise UnsupportedTransportError(
            f"Unsupported transport: {kind!r}. Supported transports: {', '.join(SUPPORTED_TRANSPORTS)}"
        )


def build_fallback_transport(config: ServerConfig) -> Optional[Transport]:
    """
    Build the fallback transport of a server configuration, if its kind has one.

    Only http configurations fall back: to SSE over the same URL and headers.
    """
    if config.transport != TransportKind.HTTP.value:
        return None
    return SseTransport(url=_validated_url(config), headers=config.headers)
