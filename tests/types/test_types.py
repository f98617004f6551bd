import pytest
from pydantic import TypeAdapter, ValidationError

from switchboard.types import (
    AuthenticationError,
    ConfigError,
    ConnectedServerSnapshot,
    ConnectionErrorKind,
    ConnectionTimeoutError,
    ContentItem,
    FunctionCall,
    ImageContentItem,
    McpServerConnectionError,
    NotConnectedError,
    ResourceContentItem,
    ServerConfig,
    ServerConnectionRefusedError,
    ServerInfo,
    SwitchboardError,
    TextContentItem,
    ToolCallResult,
    ToolNotConnectedError,
    TransportFallbackExhaustedError,
    TransportKind,
    UnsupportedTransportError,
)


class TestServerConfig:

    def test_name_defaults_to_id(self):
        config = ServerConfig(id="fs", transport="stdio", command="mcp-fs")
        assert config.name == "fs"

    @pytest.mark.parametrize("field_name", ["transport", "transport_kind", "transportKind"])
    def test_transport_field_aliases(self, field_name):
        config = ServerConfig.model_validate({"id": "s1", field_name: "SSE ", "url": "http://localhost/sse"})
        assert config.transport == "sse"

    def test_transport_kind_enum_accepted(self):
        config = ServerConfig(id="s1", transport=TransportKind.HTTP, url="http://localhost/mcp")
        assert config.transport == "http"

    def test_unknown_transport_is_constructible(self):
        # Rejected later by the transport factory, with the supported kinds named.
        config = ServerConfig(id="s1", transport="websocket", url="ws://localhost")
        assert config.transport == "websocket"

    def test_none_collections_become_empty(self):
        config = ServerConfig.model_validate({
            "id": "s1", "transport": "stdio", "command": "srv", "args": None, "env": None, "headers": None,
        })
        assert config.args == []
        assert config.env == {}
        assert config.headers == {}

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            ServerConfig(id="", transport="stdio", command="srv")

    def test_config_is_immutable(self):
        config = ServerConfig(id="s1", transport="stdio", command="srv")
        with pytest.raises(ValidationError):
            config.command = "other"


class TestContentItems:

    def test_discriminated_parsing(self):
        adapter = TypeAdapter(ContentItem)
        assert isinstance(adapter.validate_python({"type": "text", "text": "hi"}), TextContentItem)
        image = adapter.validate_python({"type": "image", "data": "AAAA", "mimeType": "image/png"})
        assert isinstance(image, ImageContentItem)
        assert image.mime_type == "image/png"
        assert isinstance(adapter.validate_python({"type": "resource", "uri": "file:///a"}), ResourceContentItem)

    def test_tool_call_result_to_dict_uses_wire_names(self):
        result = ToolCallResult(
            content=[TextContentItem(text="ok"), ImageContentItem(data="AAAA", mime_type="image/png")],
            is_error=True,
        )
        assert result.to_dict() == {
            "content": [
                {"type": "text", "text": "ok"},
                {"type": "image", "data": "AAAA", "mimeType": "image/png"},
            ],
            "isError": True,
        }

    def test_tool_call_result_accepts_wire_names(self):
        result = ToolCallResult.model_validate({"content": [{"type": "text", "text": "x"}], "isError": False})
        assert result.is_error is False
        assert result.content[0].text == "x"

    def test_function_call_defaults(self):
        call = FunctionCall(name="search")
        assert call.id is None
        assert call.args == {}


def test_failed_snapshot_shape():
    snapshot = ConnectedServerSnapshot(
        config=ServerConfig(id="s1", transport="stdio", command="/bin/false"),
        info=ServerInfo(name="Unknown", version="Unknown"),
        last_error="boom",
    )
    assert snapshot.is_connected is False
    assert snapshot.tools == []
    assert snapshot.prompts == []
    assert snapshot.resources == []


class TestErrorHierarchy:

    def test_config_errors(self):
        assert issubclass(ConfigError, SwitchboardError)
        assert issubclass(ConfigError, ValueError)
        assert issubclass(UnsupportedTransportError, ConfigError)

    def test_connection_error_kinds(self):
        assert ConnectionTimeoutError("x").kind == ConnectionErrorKind.TIMEOUT
        assert isinstance(ConnectionTimeoutError("x"), TimeoutError)
        assert ServerConnectionRefusedError("x").kind == ConnectionErrorKind.CONNECTION_REFUSED
        assert AuthenticationError("x").kind == ConnectionErrorKind.AUTHENTICATION_ERROR
        assert McpServerConnectionError("x").kind == ConnectionErrorKind.TRANSPORT_PROTOCOL_ERROR
        assert McpServerConnectionError("x", kind=ConnectionErrorKind.TIMEOUT).kind == ConnectionErrorKind.TIMEOUT

    def test_builtin_connection_refused_error_not_shadowed(self):
        assert not issubclass(ServerConnectionRefusedError, ConnectionRefusedError)

    def test_tool_not_connected_alias(self):
        assert ToolNotConnectedError is NotConnectedError

    def test_fallback_exhausted_carries_both_causes(self):
        primary = ServerConnectionRefusedError("Connection refused: cannot connect to http://h/mcp")
        fallback = ConnectionTimeoutError("Connection timed out after 30 seconds")
        error = TransportFallbackExhaustedError(primary, fallback)

        assert str(error) == (
            "HTTP and SSE connection both failed: Connection refused: cannot connect to http://h/mcp"
            " | SSE fallback: Connection timed out after 30 seconds"
        )
        assert error.kind == ConnectionErrorKind.TIMEOUT
        assert error.primary_error is primary
        assert error.fallback_error is fallback
