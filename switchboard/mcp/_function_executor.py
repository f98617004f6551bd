import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from switchboard.logging import get_invocation_logger
from switchboard.mcp._connection_supervisor import ConnectionSupervisor
from switchboard.mcp._error_classifier import describe_exception
from switchboard.types import (
    ContentItem,
    FunctionCall,
    ImageContentItem,
    TextContentItem,
    ToolCallResult,
)

logger = get_invocation_logger(source="FunctionExecutor")

ImagePublisher = Callable[[str, str], Awaitable[Optional[str]]]
"""Publishes base64 image data with its mime type and returns an addressable url, or None."""

DEFAULT_IMAGE_MIME_TYPE = "image/png"


class FunctionExecutor:
    """
    Executes the function calls requested by a model as MCP tool calls.

    Parameters
    ----------
    supervisor : ConnectionSupervisor
        The supervisor holding the connections to call the tools on.
    image_publisher : Optional[ImagePublisher]
        Publishes the images returned by tools so that they can be referenced by url.
        Images are returned with their inline data only when omitted.
    """

    _supervisor: ConnectionSupervisor
    _image_publisher: Optional[ImagePublisher]

    def __init__(
        self,
        supervisor: ConnectionSupervisor,
        *,
        image_publisher: Optional[ImagePublisher] = None,
    ):
        self._supervisor = supervisor
        self._image_publisher = image_publisher

    async def execute_function_calls(
        self,
        enabled_server_ids: Sequence[str],
        function_calls: Sequence[FunctionCall],
    ) -> Dict[str, ToolCallResult]:
        """
        Execute a batch of function calls concurrently.

        Every call runs on the first enabled server. A failing call yields an error
        result for that call and never fails the batch.

        Parameters
        ----------
        enabled_server_ids : Sequence[str]
            The ids of the servers enabled for the conversation, in priority order.
        function_calls : Sequence[FunctionCall]
            The calls to execute.

        Returns
        -------
        Dict[str, ToolCallResult]
            The result of each call, keyed by the call id, or `call-<index>` for calls
            without an id. Empty when no server is enabled.
        """
        if not enabled_server_ids:
            return {}

        server_id = enabled_server_ids[0]
        call_ids = [call.id or f"call-{index}" for index, call in enumerate(function_calls)]
        results = await asyncio.gather(
            *(self._execute(server_id, call) for call in function_calls)
        )
        return dict(zip(call_ids, results))

    async def _execute(self, server_id: str, call: FunctionCall) -> ToolCallResult:
        try:
            result = await self._supervisor.call_tool(server_id, call.name, call.args)
        except Exception as ex:
            logger.warning("Function call '%s' on MCP server '%s' failed: %s", call.name, server_id, ex)
            return ToolCallResult(
                content=[TextContentItem(text=f"Function execution error: {describe_exception(ex)}")],
                is_error=True,
            )

        if self._image_publisher is None:
            return result
        content: List[ContentItem] = list(
            await asyncio.gather(*(self._publish(item) for item in result.content))
        )
        return ToolCallResult(content=content, is_error=result.is_error)

    async def _publish(self, item: ContentItem) -> ContentItem:
        if not isinstance(item, ImageContentItem) or not item.data or item.url:
            return item
        try:
            url = await self._image_publisher(item.data, item.mime_type or DEFAULT_IMAGE_MIME_TYPE)
        except Exception as ex:
            logger.warning("Image publishing failed: %s", ex)
            return item
        if not url:
            return item
        return item.model_copy(update={"url": url})
