import json

import pytest
from pydantic import ValidationError

from switchboard import __version__
from switchboard.config import SwitchboardSetting, load_server_configs, parse_server_configs
from switchboard.types import ConfigError


class TestSwitchboardSetting:

    def test_defaults(self):
        setting = SwitchboardSetting.read()
        assert setting.connect_timeout == 30.0
        assert setting.request_timeout == 30.0
        assert setting.client_name == "switchboard"
        assert setting.client_version == __version__
        assert setting.redacted_prefix_length == 4

    def test_read_returns_singleton(self):
        assert SwitchboardSetting.read() is SwitchboardSetting.read()

    def test_set_updates_only_given_fields(self):
        SwitchboardSetting.set(connect_timeout=5, client_name="my-host")
        setting = SwitchboardSetting.read()
        assert setting.connect_timeout == 5
        assert setting.client_name == "my-host"
        assert setting.request_timeout == 30.0

    def test_set_validates(self):
        with pytest.raises(ValidationError):
            SwitchboardSetting.set(connect_timeout=-1)
        assert SwitchboardSetting.read().connect_timeout == 30.0

    def test_reset(self):
        SwitchboardSetting.set(redacted_prefix_length=8)
        SwitchboardSetting.reset()
        assert SwitchboardSetting.read().redacted_prefix_length == 4


class TestServerConfigLoading:

    def test_mcp_servers_layout_infers_transport(self):
        configs = parse_server_configs({
            "mcpServers": {
                "fs": {"command": "npx", "args": ["-y", "@modelcontextprotocol/server-filesystem", "/tmp"]},
                "remote": {"url": "https://example.com/mcp", "headers": {"Authorization": "Bearer t"}},
                "legacy": {"url": "https://example.com/sse", "transport": "sse"},
            }
        })
        assert [c.id for c in configs] == ["fs", "remote", "legacy"]
        assert [c.transport for c in configs] == ["stdio", "http", "sse"]
        assert configs[0].name == "fs"
        assert configs[1].headers == {"Authorization": "Bearer t"}

    def test_servers_list_layout(self):
        configs = parse_server_configs({
            "servers": [{"id": "a", "name": "A", "transportKind": "stdio", "command": "srv"}],
        })
        assert configs[0].name == "A"
        assert configs[0].transport == "stdio"

    def test_top_level_list_layout(self):
        configs = parse_server_configs([{"id": "a", "transport_kind": "http", "url": "http://h/mcp"}])
        assert configs[0].transport == "http"

    def test_unrecognized_layout(self):
        with pytest.raises(ConfigError, match="Unrecognized server configuration layout in cfg.json"):
            parse_server_configs({"something": 1}, source="cfg.json")

    def test_invalid_entry_names_the_source(self):
        with pytest.raises(ConfigError, match="Invalid server entry #0 in cfg.json"):
            parse_server_configs([{"id": "a"}], source="cfg.json")

    def test_non_object_entry(self):
        with pytest.raises(ConfigError, match="is not an object"):
            parse_server_configs(["a"])

    def test_duplicate_ids(self):
        with pytest.raises(ConfigError, match="Duplicate server id 'a'"):
            parse_server_configs([
                {"id": "a", "transport": "stdio", "command": "x"},
                {"id": "a", "transport": "stdio", "command": "y"},
            ])

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "servers.json"
        path.write_text(json.dumps({"mcpServers": {"fs": {"command": "srv"}}}), encoding="utf-8")
        configs = load_server_configs(str(path))
        assert configs[0].id == "fs"

    def test_missing_file(self, tmp_path):
        missing = tmp_path / "nope.json"
        with pytest.raises(ConfigError, match="not found"):
            load_server_configs(str(missing))

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Failed to parse server configuration file"):
            load_server_configs(str(path))
