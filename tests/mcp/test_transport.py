import asyncio

import pytest

from switchboard.mcp import (
    SseTransport,
    StdioTransport,
    StreamableHttpTransport,
    build_fallback_transport,
    build_transport,
)
from switchboard.types import ConfigError, ServerConfig, UnsupportedTransportError


class TestBuildTransport:

    def test_stdio(self):
        transport = build_transport(ServerConfig(id="fs", transport="stdio", command="srv", args=["-v"], env={"A": "1"}))
        assert isinstance(transport, StdioTransport)
        assert transport.kind == "stdio"
        assert transport.command == "srv"
        assert transport.args == ["-v"]
        assert transport.env == {"A": "1"}

    def test_stdio_defaults(self):
        transport = build_transport(ServerConfig(id="fs", transport="stdio", command="srv"))
        assert transport.args == []
        assert transport.env == {}

    @pytest.mark.parametrize("command", [None, "", "   "])
    def test_stdio_requires_command(self, command):
        with pytest.raises(ConfigError, match="stdio transport requires a command"):
            build_transport(ServerConfig(id="fs", transport="stdio", command=command))

    def test_sse(self, sse_config):
        transport = build_transport(sse_config)
        assert isinstance(transport, SseTransport)
        assert transport.kind == "sse"
        assert transport.url == "http://127.0.0.1:9/sse"
        assert transport.headers == {}

    def test_http_is_streamable_not_sse(self, http_config):
        transport = build_transport(http_config)
        assert isinstance(transport, StreamableHttpTransport)
        assert transport.kind == "http"
        assert transport.headers == {"Authorization": "Bearer sk-live-0123456789"}

    @pytest.mark.parametrize("transport_kind", ["sse", "http"])
    def test_url_required(self, transport_kind):
        with pytest.raises(ConfigError, match="requires a url"):
            build_transport(ServerConfig(id="r", transport=transport_kind))

    @pytest.mark.parametrize("url", ["not a url", "/relative/mcp", "ftp://example.com/mcp", "http://"])
    def test_url_must_be_absolute_http(self, url):
        with pytest.raises(ConfigError, match="Invalid URL"):
            build_transport(ServerConfig(id="r", transport="http", url=url))

    def test_unsupported_transport_names_supported_set(self):
        with pytest.raises(UnsupportedTransportError) as exc_info:
            build_transport(ServerConfig(id="r", transport="websocket", url="ws://localhost"))
        assert "websocket" in str(exc_info.value)
        assert "stdio, sse, http" in str(exc_info.value)

    def test_repr_never_shows_headers(self, http_config):
        assert "sk-live" not in repr(build_transport(http_config))


class TestFallbackTransport:

    def test_http_falls_back_to_sse_with_same_url_and_headers(self, http_config):
        fallback = build_fallback_transport(http_config)
        assert isinstance(fallback, SseTransport)
        assert fallback.url == http_config.url
        assert fallback.headers == http_config.headers

    def test_sse_and_stdio_have_no_fallback(self, sse_config):
        assert build_fallback_transport(sse_config) is None
        assert build_fallback_transport(ServerConfig(id="fs", transport="stdio", command="srv")) is None


class TestTransportClose:

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        transport = StdioTransport("srv")
        await transport.close()
        await transport.close()
        assert transport.closed is True

    @pytest.mark.asyncio
    async def test_close_cancels_owner_task(self):
        transport = SseTransport("http://127.0.0.1:9/sse")
        owner = asyncio.create_task(asyncio.sleep(60))
        transport.attach(owner)

        await transport.close()

        assert owner.cancelled()

    @pytest.mark.asyncio
    async def test_closed_transport_cannot_be_reused(self):
        transport = StdioTransport("srv")
        await transport.close()
        owner = asyncio.create_task(asyncio.sleep(0))
        with pytest.raises(RuntimeError, match="already been closed"):
            transport.attach(owner)
        await owner
