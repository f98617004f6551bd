import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional

from mcp.shared.exceptions import McpError
from mcp.types import Prompt, Resource, Tool

from switchboard.logging import get_connection_logger

if TYPE_CHECKING:
    from switchboard.mcp._mcp_server_connection import McpServerConnection

logger = get_connection_logger(source="CapabilityDiscoverer")

CAPABILITIES = ("tools", "prompts", "resources")


@dataclass
class DiscoveryResult:
    """
    The capability listings of one server, as seen by one discovery run.
    """

    tools: List[Tool] = field(default_factory=list)
    prompts: List[Prompt] = field(default_factory=list)
    resources: List[Resource] = field(default_factory=list)
    errors: Dict[str, BaseException] = field(default_factory=dict)
    """The failure of each listing that failed, keyed by capability."""

    @property
    def all_failed(self) -> bool:
        return len(self.errors) == len(CAPABILITIES)

    @property
    def looks_dead(self) -> bool:
        """
        Whether every listing failed without the server answering any of them.

        A server that answered with a protocol error response (e.g. "method not found"
        for a capability it does not implement) is alive.
        """
        if not self.all_failed:
            return False
        return not any(isinstance(error, McpError) for error in self.errors.values())


class CapabilityDiscoverer:
    """
    Lists the tools, prompts and resources of a connected server.

    The three listings run concurrently and settle independently: a listing that fails
    yields an empty sequence for its capability and never fails the others. Many servers
    implement only a subset of the capabilities, so a failed listing alone says nothing
    about the health of the connection.
    """

    async def discover(self, client: "McpServerConnection") -> DiscoveryResult:
        """
        Run the three listings against a connected client.

        Parameters
        ----------
        client : McpServerConnection
            The connected protocol client.

        Returns
        -------
        DiscoveryResult
            The listings, with an empty sequence and a recorded error for each listing
            that failed.
        """
        tools, prompts, resources = await asyncio.gather(
            self._settle("tools", client.name, client.list_tools, lambda r: r.tools),
            self._settle("prompts", client.name, client.list_prompts, lambda r: r.prompts),
            self._settle("resources", client.name, client.list_resources, lambda r: r.resources),
        )

        result = DiscoveryResult()
        for capability, (items, error) in zip(CAPABILITIES, (tools, prompts, resources)):
            setattr(result, capability, items)
            if error is not None:
                result.errors[capability] = error
        return result

    async def _settle(
        self,
        capability: str,
        server_name: str,
        list_call: Callable[[], Awaitable[Any]],
        pick: Callable[[Any], Optional[List[Any]]],
    ):
        try:
            response = await list_call()
        except Exception as ex:
            logger.debug("Listing %s of MCP server '%s' failed: %s", capability, server_name, ex)
            return [], ex
        return list(pick(response) or []), None
