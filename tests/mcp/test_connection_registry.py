import threading

import pytest

from switchboard.mcp import ConnectionHandle, ConnectionRegistry, StdioTransport
from switchboard.types import McpServerConnectionError, ServerConfig
from tests.mcp.fake_clients import FakeClientFactory, FakeServer


def _handle(server_id: str, **server_options) -> ConnectionHandle:
    config = ServerConfig(id=server_id, transport="stdio", command="srv")
    client = FakeClientFactory(stdio=FakeServer(**server_options))(server_id)
    return ConnectionHandle(config, client, StdioTransport("srv"))


def test_put_get_remove():
    registry = ConnectionRegistry()
    handle = _handle("a")

    assert registry.get("a") is None
    registry.put("a", handle)
    assert registry.get("a") is handle
    assert "a" in registry
    assert len(registry) == 1

    assert registry.remove("a") is True
    assert registry.remove("a") is False
    assert registry.get("a") is None


def test_put_replaces_existing_entry():
    registry = ConnectionRegistry()
    first, second = _handle("a"), _handle("a")
    registry.put("a", first)
    registry.put("a", second)
    assert registry.get("a") is second
    assert registry.list_ids() == ["a"]


def test_remove_only_matching_handle():
    registry = ConnectionRegistry()
    stale, current = _handle("a"), _handle("a")
    registry.put("a", current)

    assert registry.remove("a", stale) is False
    assert registry.get("a") is current
    assert registry.remove("a", current) is True


def test_registries_are_independent():
    first, second = ConnectionRegistry(), ConnectionRegistry()
    first.put("a", _handle("a"))
    assert second.list_ids() == []


def test_concurrent_access_to_different_ids():
    registry = ConnectionRegistry()
    handles = {f"s{i}": _handle(f"s{i}") for i in range(50)}

    def churn(server_id: str):
        for _ in range(100):
            registry.put(server_id, handles[server_id])
            registry.get(server_id)
            registry.remove(server_id)
        registry.put(server_id, handles[server_id])

    threads = [threading.Thread(target=churn, args=(server_id,)) for server_id in handles]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(registry.list_ids()) == sorted(handles)


@pytest.mark.asyncio
async def test_handle_close_attempts_both_steps():
    handle = _handle("a", close_error=McpServerConnectionError("client close failed"))
    await handle.client.connect(handle.transport)

    errors = await handle.close()

    assert [str(e) for e in errors] == ["client close failed"]
    assert handle.client.closed is True
    assert handle.transport.closed is True
