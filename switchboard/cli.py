"""
The `switchboard` console command: probe MCP servers from a config file and run single
tool calls, prompt renders and resource reads against them.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

import click

from switchboard.config import load_server_configs
from switchboard.logging import setup_verbose_logging
from switchboard.mcp import ConnectionSupervisor
from switchboard.types import (
    ConfigError,
    ConnectedServerSnapshot,
    NotConnectedError,
    ServerConfig,
    ToolCallError,
    ToolCallResult,
)


def parse_argument(raw: str) -> Tuple[str, Any]:
    """
    Parse one `key=value` option. The value is decoded as JSON when it is valid JSON and
    kept as a string otherwise.
    """
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise click.BadParameter(f"expected key=value, got {raw!r}", param_hint="'-a'")
    try:
        return key, json.loads(value)
    except ValueError:
        return key, value


def _parse_arguments(raw_arguments: Sequence[str]) -> Dict[str, Any]:
    return dict(parse_argument(raw) for raw in raw_arguments)


def _load_configs(config_file: str) -> List[ServerConfig]:
    try:
        return load_server_configs(config_file)
    except ConfigError as ex:
        raise click.ClickException(str(ex)) from ex


def _select(configs: List[ServerConfig], server_ids: Sequence[str]) -> List[ServerConfig]:
    if not server_ids:
        return configs
    by_id = {config.id: config for config in configs}
    unknown = [server_id for server_id in server_ids if server_id not in by_id]
    if unknown:
        raise click.ClickException(f"Unknown server id(s): {', '.join(unknown)}")
    return [by_id[server_id] for server_id in server_ids]


def summarize_snapshot(snapshot: ConnectedServerSnapshot) -> Dict[str, Any]:
    return {
        "id": snapshot.config.id,
        "name": snapshot.config.name,
        "connected": snapshot.is_connected,
        "server": f"{snapshot.info.name} {snapshot.info.version}",
        "tools": len(snapshot.tools),
        "prompts": len(snapshot.prompts),
        "resources": len(snapshot.resources),
        "error": snapshot.last_error,
    }


async def _probe(supervisor: ConnectionSupervisor, configs: List[ServerConfig]) -> List[ConnectedServerSnapshot]:
    try:
        return list(await asyncio.gather(*(supervisor.connect(config) for config in configs)))
    finally:
        await supervisor.disconnect_all()


async def _run_on_server(
    supervisor: ConnectionSupervisor,
    config: ServerConfig,
    operation: Callable[[], Awaitable[ToolCallResult]],
) -> ToolCallResult:
    snapshot = await supervisor.connect(config)
    if not snapshot.is_connected:
        raise click.ClickException(f"Failed to connect to '{config.id}': {snapshot.last_error}")
    try:
        return await operation()
    except (NotConnectedError, ToolCallError) as ex:
        raise click.ClickException(str(ex)) from ex
    finally:
        await supervisor.disconnect(config.id)


def _emit_result(result: ToolCallResult) -> None:
    click.echo(json.dumps(result.to_dict(), ensure_ascii=False))
    if result.is_error:
        raise click.exceptions.Exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
@click.option(
    "--connect-timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds a connect attempt may take (default: 30).",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, connect_timeout: Optional[float]):
    """Connect to MCP servers and invoke their tools, prompts and resources."""
    if verbose:
        setup_verbose_logging()
    ctx.obj = ConnectionSupervisor(connect_timeout=connect_timeout)


@main.command()
@click.argument("config_file", type=click.Path(dir_okay=False))
@click.argument("server_ids", nargs=-1)
@click.pass_obj
def probe(supervisor: ConnectionSupervisor, config_file: str, server_ids: Tuple[str, ...]):
    """Connect to the servers of CONFIG_FILE (all, or SERVER_IDS) and report their state."""
    configs = _select(_load_configs(config_file), server_ids)
    snapshots = asyncio.run(_probe(supervisor, configs))
    for snapshot in snapshots:
        click.echo(json.dumps(summarize_snapshot(snapshot), ensure_ascii=False))
    if not all(snapshot.is_connected for snapshot in snapshots):
        raise click.exceptions.Exit(1)


@main.command()
@click.argument("config_file", type=click.Path(dir_okay=False))
@click.argument("server_id")
@click.argument("tool_name")
@click.option("--arg", "-a", "raw_arguments", multiple=True, help="A tool argument as key=value.")
@click.pass_obj
def call(
    supervisor: ConnectionSupervisor,
    config_file: str,
    server_id: str,
    tool_name: str,
    raw_arguments: Tuple[str, ...],
):
    """Call TOOL_NAME on SERVER_ID and print the result."""
    arguments = _parse_arguments(raw_arguments)
    config = _select(_load_configs(config_file), [server_id])[0]
    result = asyncio.run(_run_on_server(
        supervisor, config, lambda: supervisor.call_tool(server_id, tool_name, arguments),
    ))
    _emit_result(result)


@main.command()
@click.argument("config_file", type=click.Path(dir_okay=False))
@click.argument("server_id")
@click.argument("prompt_name")
@click.option("--arg", "-a", "raw_arguments", multiple=True, help="A prompt argument as key=value.")
@click.pass_obj
def prompt(
    supervisor: ConnectionSupervisor,
    config_file: str,
    server_id: str,
    prompt_name: str,
    raw_arguments: Tuple[str, ...],
):
    """Render PROMPT_NAME on SERVER_ID and print the messages."""
    arguments = _parse_arguments(raw_arguments)
    config = _select(_load_configs(config_file), [server_id])[0]
    result = asyncio.run(_run_on_server(
        supervisor, config, lambda: supervisor.get_prompt(server_id, prompt_name, arguments),
    ))
    _emit_result(result)


@main.command()
@click.argument("config_file", type=click.Path(dir_okay=False))
@click.argument("server_id")
@click.argument("uri")
@click.pass_obj
def read(supervisor: ConnectionSupervisor, config_file: str, server_id: str, uri: str):
    """Read the resource URI from SERVER_ID and print its contents."""
    config = _select(_load_configs(config_file), [server_id])[0]
    result = asyncio.run(_run_on_server(
        supervisor, config, lambda: supervisor.read_resource(server_id, uri),
    ))
    _emit_result(result)


if __name__ == "__main__":
    main()
