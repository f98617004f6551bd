import base64
import json

import pytest
import pytest_asyncio

from switchboard.mcp import ConnectionSupervisor, SseTransport, StreamableHttpTransport
from switchboard.types import ImageContentItem, NotConnectedError, ServerConfig, TextContentItem
from tests.mcp.mock_servers._server_process import WRITER_SERVER_SCRIPT, McpHttpServerProcess, find_free_port

WRITER_TOOLS = {"write_advertising", "render_badge", "fail_loudly"}


@pytest.fixture(scope="module")
def writer_streamable_http_server():
    with McpHttpServerProcess(
        server_script=WRITER_SERVER_SCRIPT,
        transport="streamable_http",
        port=find_free_port(),
        startup_timeout=10.0,
    ) as server:
        yield server


@pytest.fixture(scope="module")
def writer_sse_server():
    with McpHttpServerProcess(
        server_script=WRITER_SERVER_SCRIPT,
        transport="sse",
        port=find_free_port(),
        startup_timeout=10.0,
    ) as server:
        yield server


@pytest_asyncio.fixture
async def supervisor():
    supervisor = ConnectionSupervisor(connect_timeout=10)
    yield supervisor
    await supervisor.disconnect_all()


@pytest_asyncio.fixture
async def writer_stdio(supervisor, writer_stdio_config):
    snapshot = await supervisor.connect(writer_stdio_config)
    assert snapshot.is_connected, snapshot.last_error
    return snapshot


class TestStdio:

    @pytest.mark.asyncio
    async def test_connect_reports_server_and_capabilities(self, writer_stdio):
        assert writer_stdio.info.name == "writer-mcp"
        assert {t.name for t in writer_stdio.tools} == WRITER_TOOLS
        assert [p.name for p in writer_stdio.prompts] == ["ask_for_creative"]
        assert [str(r.uri) for r in writer_stdio.resources] == ["writer://style-guide"]
        assert "tools" in writer_stdio.info.capabilities

    @pytest.mark.asyncio
    async def test_call_tool(self, supervisor, writer_stdio):
        result = await supervisor.call_tool("writer", "write_advertising", {"topic": "tea"})
        assert result.is_error is False
        assert result.content == [TextContentItem(text="This is advertising about tea.")]

    @pytest.mark.asyncio
    async def test_call_tool_returning_image(self, supervisor, writer_stdio):
        result = await supervisor.call_tool("writer", "render_badge", {"label": "new"})
        image = result.content[0]
        assert isinstance(image, ImageContentItem)
        assert image.mime_type == "image/png"
        assert base64.b64decode(image.data).startswith(b"\x89PNG")

    @pytest.mark.asyncio
    async def test_tool_error_flag_is_preserved(self, supervisor, writer_stdio):
        result = await supervisor.call_tool("writer", "fail_loudly", {"reason": "testing"})
        assert result.is_error is True
        assert "failed on purpose: testing" in result.content[0].text

    @pytest.mark.asyncio
    async def test_get_prompt(self, supervisor, writer_stdio):
        result = await supervisor.get_prompt(
            "writer", "ask_for_creative", {"topic": "Product Launch", "description": "AI meets design"},
        )
        assert len(result.content) == 2
        assert "Product Launch" in result.content[0].text
        assert "AI meets design" in result.content[0].text

    @pytest.mark.asyncio
    async def test_read_resource(self, supervisor, writer_stdio):
        result = await supervisor.read_resource("writer", "writer://style-guide")
        (item,) = result.content
        entry = json.loads(item.text)
        assert entry["uri"] == "writer://style-guide"
        assert entry["mimeType"] == "text/plain"
        assert entry["text"] == "Write short sentences."

    @pytest.mark.asyncio
    async def test_describe_and_disconnect(self, supervisor, writer_stdio):
        snapshot = await supervisor.describe("writer")
        assert snapshot is not None
        assert {t.name for t in snapshot.tools} == WRITER_TOOLS

        await supervisor.disconnect("writer")
        assert supervisor.list_ids() == []
        with pytest.raises(NotConnectedError):
            await supervisor.call_tool("writer", "write_advertising", {"topic": "tea"})

    @pytest.mark.asyncio
    async def test_reconnect_keeps_one_handle(self, supervisor, writer_stdio, writer_stdio_config):
        snapshot = await supervisor.connect(writer_stdio_config)
        assert snapshot.is_connected is True
        assert supervisor.list_ids() == ["writer"]
        result = await supervisor.call_tool("writer", "write_advertising", {"topic": "tea"})
        assert result.is_error is False


class TestRemote:

    @pytest.mark.asyncio
    async def test_streamable_http(self, supervisor, writer_streamable_http_server):
        config = ServerConfig(id="writer-http", transport="http", url=writer_streamable_http_server.url)

        snapshot = await supervisor.connect(config)

        assert snapshot.is_connected is True, snapshot.last_error
        assert {t.name for t in snapshot.tools} == WRITER_TOOLS
        handle = supervisor.registry.get("writer-http")
        assert isinstance(handle.transport, StreamableHttpTransport)
        assert handle.fallback_used is False

        result = await supervisor.call_tool("writer-http", "write_advertising", {"topic": "tea"})
        assert result.content == [TextContentItem(text="This is advertising about tea.")]

    @pytest.mark.asyncio
    async def test_sse(self, supervisor, writer_sse_server):
        config = ServerConfig(id="writer-sse", transport="sse", url=writer_sse_server.url)

        snapshot = await supervisor.connect(config)

        assert snapshot.is_connected is True, snapshot.last_error
        assert [p.name for p in snapshot.prompts] == ["ask_for_creative"]

    @pytest.mark.asyncio
    async def test_http_config_falls_back_to_sse_server(self, writer_sse_server):
        supervisor = ConnectionSupervisor(connect_timeout=5)
        config = ServerConfig(id="writer-legacy", transport="http", url=writer_sse_server.url)
        try:
            snapshot = await supervisor.connect(config)

            assert snapshot.is_connected is True, snapshot.last_error
            handle = supervisor.registry.get("writer-legacy")
            assert isinstance(handle.transport, SseTransport)
            assert handle.fallback_used is True
            result = await supervisor.call_tool("writer-legacy", "write_advertising", {"topic": "tea"})
            assert result.is_error is False
        finally:
            await supervisor.disconnect_all()

    @pytest.mark.asyncio
    async def test_nothing_listening(self):
        supervisor = ConnectionSupervisor(connect_timeout=3)
        config = ServerConfig(id="nobody", transport="http", url=f"http://127.0.0.1:{find_free_port()}/mcp")

        snapshot = await supervisor.connect(config)

        assert snapshot.is_connected is False
        assert snapshot.last_error.startswith("HTTP and SSE connection both failed:")
        assert supervisor.list_ids() == []
