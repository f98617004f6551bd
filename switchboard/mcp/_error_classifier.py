"""
Classification of connect failures into user-actionable errors.

Transports fail in many shapes: builtin OS errors, httpx errors, HTTP status errors,
protocol errors from the session, and exception groups raised by the anyio task groups
of the SDK. The classifier flattens all of them and picks the most specific category.
"""

import asyncio
import re
import socket
from typing import Iterator, List, Optional

import httpx

from switchboard.types import (
    AuthenticationError,
    ConnectionTimeoutError,
    HostNotFoundError,
    McpServerConnectionError,
    ServerConfig,
    ServerConnectionRefusedError,
    TransportProtocolError,
)

_AUTH_MARKERS = ("invalid_token", "unauthorized", "forbidden", "authorization header")
_AUTH_STATUS_PATTERN = re.compile(r"\b(401|403)\b")
_REFUSED_MARKERS = ("econnrefused", "connection refused", "connect call failed", "all connection attempts failed")
_HOST_MARKERS = ("enotfound", "getaddrinfo", "name or service not known", "nodename nor servname", "name resolution")
_GATEWAY_TIMEOUT_PATTERN = re.compile(r"\b504\b|gateway timeout")


def iter_leaf_exceptions(error: BaseException) -> Iterator[BaseException]:
    """
    Yield the error itself, the members of exception groups and the `__cause__` chain,
    depth first.
    """
    seen = set()
    stack: List[BaseException] = [error]
    while stack:
        current = stack.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        members = getattr(current, "exceptions", None)
        if isinstance(members, (list, tuple)):
            stack.extend(reversed(members))
        if current.__cause__ is not None:
            stack.append(current.__cause__)
        elif current.__context__ is not None and not current.__suppress_context__:
            stack.append(current.__context__)


def describe_exception(error: BaseException) -> str:
    """
    A one-line description of an exception that is never empty.
    """
    for leaf in iter_leaf_exceptions(error):
        if getattr(leaf, "exceptions", None):
            continue
        text = str(leaf).strip()
        if text:
            return text
    return f"{type(error).__name__}: connection closed or timed out"


def _status_code(error: BaseException) -> Optional[int]:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


def _target(config: ServerConfig) -> str:
    if config.url:
        return config.url
    return config.command or config.id


def classify_connection_error(
    error: BaseException,
    config: ServerConfig,
    *,
    timeout: float,
) -> McpServerConnectionError:
    """
    Turn a raw connect failure into a categorized error with an actionable message.

    Parameters
    ----------
    error : BaseException
        The raw failure.
    config : ServerConfig
        The configuration of the attempt. Only its url or command is echoed, never its
        headers or environment.
    timeout : float
        The connect bound that was applied, named in timeout messages.

    Returns
    -------
    McpServerConnectionError
        One of the connection error subclasses. Already categorized errors are returned
        unchanged.
    """
    if isinstance(error, McpServerConnectionError):
        return error

    target = _target(config)
    leaves = list(iter_leaf_exceptions(error))
    detail = describe_exception(error)
    texts = " | ".join(str(leaf) for leaf in leaves).lower()

    if any(isinstance(leaf, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)) for leaf in leaves):
        return ConnectionTimeoutError(
            f"Connection timed out: {target} did not respond within {timeout:g} seconds. "
            f"Check that the server is running."
        )

    status_codes = [code for code in (_status_code(leaf) for leaf in leaves) if code is not None]
    if (
        any(code in (401, 403) for code in status_codes)
        or any(marker in texts for marker in _AUTH_MARKERS)
        or _AUTH_STATUS_PATTERN.search(texts)
    ):
        return AuthenticationError(
            f"Authentication failed for {target}: {detail}. "
            f"Check the credentials in the server headers (e.g. 'Authorization: Bearer <token>')."
        )

    if 504 in status_codes or _GATEWAY_TIMEOUT_PATTERN.search(texts):
        return ConnectionTimeoutError(
            f"Connection timed out (504): {target} is not responding. "
            f"Check that the server is running and the URL is correct."
        )

    if any(isinstance(leaf, socket.gaierror) for leaf in leaves) or any(marker in texts for marker in _HOST_MARKERS):
        return HostNotFoundError(
            f"Host not found: {target}. Check that the URL is correct."
        )

    if (
        any(isinstance(leaf, ConnectionRefusedError) for leaf in leaves)
        or any(marker in texts for marker in _REFUSED_MARKERS)
    ):
        return ServerConnectionRefusedError(
            f"Connection refused: cannot connect to {target}. Check that the server is running."
        )

    if "sse error" in texts:
        return TransportProtocolError(
            f"SSE connection error: {detail}. Check that the server supports SSE."
        )

    if any(isinstance(leaf, (FileNotFoundError, PermissionError)) for leaf in leaves):
        return TransportProtocolError(
            f"Failed to start server process '{target}': {detail}"
        )

    return TransportProtocolError(f"Failed to connect to {target} over {config.transport}: {detail}")
