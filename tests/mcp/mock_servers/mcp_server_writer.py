import click
from typing import List
from mcp.server.fastmcp import FastMCP, Image
from mcp.types import PromptMessage

mcp = FastMCP("writer-mcp")

# Not a renderable image; only the PNG signature matters to clients.
BADGE_PNG = b"\x89PNG\r\n\x1a\nbadge"


@mcp.tool()
def write_advertising(topic: str) -> str:
    return f"This is advertising about {topic}."


@mcp.tool()
def render_badge(label: str) -> Image:
    return Image(data=BADGE_PNG, format="png")


@mcp.tool()
def fail_loudly(reason: str) -> str:
    raise ValueError(f"failed on purpose: {reason}")


@mcp.resource("writer://style-guide", mime_type="text/plain")
def style_guide() -> str:
    return "Write short sentences."


@mcp.prompt()
def ask_for_creative(topic: str, description: str) -> List[PromptMessage]:
    return [
        {
            "role": "user",
            "content": {
                "type": "text",
                "text": (
                    f"You are a creativity expert specializing in the topic: {topic}.\n\n"
                    f"Based on the following description, please provide creative suggestions: {description}"
                ),
            },
        },
        {
            "role": "assistant",
            "content": {
                "type": "text",
                "text": f"For the topic '{topic}', I suggest leveraging its unique features.",
            },
        }
    ]


@click.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse", "streamable_http"], case_sensitive=False),
    default="stdio",
    help="Transport type to use (default: stdio)",
)
@click.option(
    "--host",
    type=str,
    default="127.0.0.1",
    help="Host address for SSE or Streamable HTTP transport (default: 127.0.0.1)",
)
@click.option(
    "--port",
    type=int,
    default=8000,
    help="Port number for SSE or Streamable HTTP transport (default: 8000)",
)
def main(transport: str, host: str, port: int):
    transport = transport.lower()
    if transport == "stdio":
        mcp.run(transport="stdio")
    elif transport in ("sse", "streamable_http"):
        mcp.settings.host = host
        mcp.settings.port = port
        mcp.run(transport="sse" if transport == "sse" else "streamable-http")
    else:
        click.echo(f"Unsupported transport: {transport}", err=True)
        raise click.Abort()


if __name__ == "__main__":
    main()
