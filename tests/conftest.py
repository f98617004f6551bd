"""
Shared pytest fixtures for Switchboard tests.

This module provides the fixtures shared by the unit tests, which drive the supervisor
with fake protocol clients, and the integration tests, which talk to a mock MCP server.
"""
import sys

import pytest

from switchboard.config import SwitchboardSetting
from switchboard.types import ServerConfig
from tests.mcp.mock_servers._server_process import WRITER_SERVER_SCRIPT


@pytest.fixture(autouse=True)
def reset_setting():
    """Every test starts from the default settings."""
    SwitchboardSetting.reset()
    yield
    SwitchboardSetting.reset()


@pytest.fixture
def writer_stdio_config() -> ServerConfig:
    return ServerConfig(
        id="writer",
        name="Writer",
        transport="stdio",
        command=sys.executable,
        args=[WRITER_SERVER_SCRIPT, "--transport", "stdio"],
    )


@pytest.fixture
def http_config() -> ServerConfig:
    return ServerConfig(
        id="remote",
        transport="http",
        url="http://127.0.0.1:9/mcp",
        headers={"Authorization": "Bearer sk-live-0123456789"},
    )


@pytest.fixture
def sse_config() -> ServerConfig:
    return ServerConfig(id="remote-sse", transport="sse", url="http://127.0.0.1:9/sse")
