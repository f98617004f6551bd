"""
Invocation of tools, prompts and resources on established connections, and the
normalization of their heterogeneous payloads into `ContentItem`s.
"""

import base64
import json
import time
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ValidationError

from switchboard.logging import get_invocation_logger
from switchboard.mcp._connection_registry import ConnectionHandle, ConnectionRegistry
from switchboard.mcp._error_classifier import describe_exception
from switchboard.types import (
    ContentItem,
    ImageContentItem,
    NotConnectedError,
    ResourceContentItem,
    TextContentItem,
    ToolCallError,
    ToolCallResult,
)

logger = get_invocation_logger(source="ToolInvoker")


def _as_plain(raw: Any) -> Any:
    if isinstance(raw, BaseModel):
        return raw.model_dump(mode="json", by_alias=True, exclude_none=True)
    return raw


def _serialize(raw: Any) -> str:
    return json.dumps(_as_plain(raw), ensure_ascii=False, default=str)


def _build_or_serialize(model: type, raw: Any, **fields: Any) -> ContentItem:
    # A malformed item still maps to exactly one item: its JSON form.
    try:
        return model(**fields)
    except ValidationError:
        return TextContentItem(text=_serialize(raw))


def normalize_content_item(raw: Any) -> ContentItem:
    """
    Map one raw payload item to exactly one `ContentItem`.

    Text items keep their text; image items keep `data` and `mimeType` unchanged, with
    raw bytes base64-encoded; embedded resources and resource links become resource
    items. Plain strings are taken as text. Any other shape, including an image or
    resource whose fields are not text, degrades to a text item holding its JSON form,
    so nothing is dropped.

    Parameters
    ----------
    raw : Any
        An MCP content model, a mapping of the same shape, or any other value.

    Returns
    -------
    ContentItem
        The normalized item.
    """
    if isinstance(raw, str):
        return TextContentItem(text=raw)

    item = _as_plain(raw)
    if not isinstance(item, Mapping):
        return TextContentItem(text=_serialize(item))

    item_type = item.get("type")
    if item_type == "text" and isinstance(item.get("text"), str):
        return TextContentItem(text=item["text"])
    if item_type == "image":
        data = item.get("data")
        if isinstance(data, (bytes, bytearray)):
            data = base64.b64encode(data).decode("ascii")
        return _build_or_serialize(
            ImageContentItem, item,
            data=data,
            mime_type=item.get("mimeType"),
            url=item.get("url"),
        )
    if item_type == "resource":
        embedded = item.get("resource")
        if isinstance(embedded, Mapping):
            return _build_or_serialize(
                ResourceContentItem, item,
                uri=embedded.get("uri"),
                mime_type=embedded.get("mimeType"),
                text=embedded.get("text"),
                data=embedded.get("blob"),
            )
        return _build_or_serialize(
            ResourceContentItem, item,
            uri=item.get("uri"),
            url=item.get("url"),
            mime_type=item.get("mimeType"),
            text=item.get("text"),
            data=item.get("data"),
        )
    if item_type == "resource_link":
        return _build_or_serialize(ResourceContentItem, item, uri=item.get("uri"), mime_type=item.get("mimeType"))

    return TextContentItem(text=_serialize(item))


def normalize_content(raw_items: Optional[List[Any]]) -> List[ContentItem]:
    return [normalize_content_item(raw) for raw in (raw_items or [])]


def stringify_prompt_arguments(arguments: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """
    Coerce prompt arguments to strings, since prompt arguments are string-typed in the
    protocol. Strings pass through; JSON-like values (bool, None, dicts, lists) are
    rendered as JSON; everything else with `str()`.
    """
    coerced: Dict[str, str] = {}
    for key, value in (arguments or {}).items():
        if isinstance(value, str):
            coerced[key] = value
        elif value is None or isinstance(value, (bool, dict, list)):
            coerced[key] = json.dumps(value, ensure_ascii=False)
        else:
            coerced[key] = str(value)
    return coerced


def normalize_prompt_message(message: Any) -> TextContentItem:
    """
    Map one prompt message to a text item: text content is taken as is, any other
    message body is serialized.
    """
    content = getattr(message, "content", None)
    if content is None and isinstance(message, Mapping):
        content = message.get("content")
    plain = _as_plain(content)
    if isinstance(plain, str):
        return TextContentItem(text=plain)
    if isinstance(plain, Mapping) and plain.get("type") == "text" and isinstance(plain.get("text"), str):
        return TextContentItem(text=plain["text"])
    return TextContentItem(text=_serialize(plain))


def normalize_resource_content(entry: Any) -> TextContentItem:
    """
    Map one resource content entry to a text item: a plain string is taken as is, any
    other entry is serialized whole, so its `uri` and `mimeType` reach the caller.
    """
    if isinstance(entry, str):
        return TextContentItem(text=entry)
    return TextContentItem(text=_serialize(entry))


class ToolInvoker:
    """
    Issues tool calls, prompt renders and resource reads against the connections held
    by a `ConnectionRegistry`.

    Every operation fails with `NotConnectedError` when the server id has no live
    handle, and with `ToolCallError` when the operation failed on an established
    connection.
    """

    _registry: ConnectionRegistry

    def __init__(self, registry: ConnectionRegistry):
        self._registry = registry

    def _require_handle(self, server_id: str) -> ConnectionHandle:
        handle = self._registry.get(server_id)
        if handle is None:
            raise NotConnectedError(
                f"MCP server '{server_id}' is not connected. Connect to the server first."
            )
        return handle

    async def call_tool(
        self,
        server_id: str,
        tool_name: str,
        arguments: Optional[Dict[str, Any]] = None,
    ) -> ToolCallResult:
        """
        Call a tool and normalize its result.

        Parameters
        ----------
        server_id : str
            The id of the connected server.
        tool_name : str
            The name of the tool.
        arguments : Optional[Dict[str, Any]]
            The arguments of the tool call.

        Returns
        -------
        ToolCallResult
            The normalized content, with the `isError` flag reported by the server.

        Raises
        ------
        NotConnectedError
            If the server is not connected.
        ToolCallError
            If the call failed at the transport or protocol level.
        """
        handle = self._require_handle(server_id)
        start = time.time()
        try:
            raw = await handle.client.call_tool(tool_name, arguments or {})
        except NotConnectedError:
            raise
        except Exception as ex:
            message = f"Tool call failed: {describe_exception(ex)}"
            self._log(server_id, "call_tool", tool_name, start, error_message=message)
            raise ToolCallError(message) from ex

        result = ToolCallResult(content=normalize_content(raw.content), is_error=bool(raw.isError))
        self._log(server_id, "call_tool", tool_name, start, is_error=result.is_error)
        return result

    async def get_prompt(
        self,
        server_id: str,
        prompt_name: str,
        arguments: Optional[Mapping[str, Any]] = None,
    ) -> ToolCallResult:
        """
        Render a prompt. Arguments are coerced to strings before dispatch and each
        rendered message becomes one text item.
        """
        handle = self._require_handle(server_id)
        start = time.time()
        try:
            raw = await handle.client.get_prompt(prompt_name, stringify_prompt_arguments(arguments))
        except NotConnectedError:
            raise
        except Exception as ex:
            message = f"Prompt execution failed: {describe_exception(ex)}"
            self._log(server_id, "get_prompt", prompt_name, start, error_message=message)
            raise ToolCallError(message) from ex

        content: List[ContentItem] = [normalize_prompt_message(m) for m in raw.messages]
        self._log(server_id, "get_prompt", prompt_name, start)
        return ToolCallResult(content=content)

    async def read_resource(self, server_id: str, uri: str) -> ToolCallResult:
        """
        Read a resource. Each content entry becomes one text item.
        """
        handle = self._require_handle(server_id)
        start = time.time()
        try:
            raw = await handle.client.read_resource(uri)
        except NotConnectedError:
            raise
        except Exception as ex:
            message = f"Resource read failed: {describe_exception(ex)}"
            self._log(server_id, "read_resource", uri, start, error_message=message)
            raise ToolCallError(message) from ex

        content: List[ContentItem] = [normalize_resource_content(c) for c in raw.contents]
        self._log(server_id, "read_resource", uri, start)
        return ToolCallResult(content=content)

    def _log(
        self,
        server_id: str,
        operation: str,
        target: str,
        start: float,
        *,
        is_error: bool = False,
        error_message: Optional[str] = None,
    ) -> None:
        elapsed = time.time() - start
        if error_message is not None:
            logger.warning("%s '%s' on MCP server '%s' failed: %s", operation, target, server_id, error_message)
        else:
            logger.info("%s '%s' on MCP server '%s' completed in %.3fs", operation, target, server_id, elapsed)
        logger.log_tool_call(
            server_id=server_id,
            operation=operation,
            target=target,
            execution_time=elapsed,
            is_error=is_error or error_message is not None,
            error_message=error_message,
        )
