"""MCP server wiring for mcp-safe-fetch.

Successful tool calls return the sanitized text directly; failures return the
JSON error envelope.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

try:
    from mcp.server import Server
    from mcp.types import Resource, TextContent, Tool
except ImportError as exc:  # pragma: no cover
    raise ImportError("MCP library not installed. Install with: pip install mcp") from exc

from . import __version__
from .errors import internal_error
from .tools import TOOL_METADATA, dispatch_tool, initialize_runtime

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)

server = Server("safe-fetch")

_RESOURCES = (
    ("safe-fetch://server-status", "Server Status", "Sanitizer configuration and session totals"),
    ("safe-fetch://capabilities", "Capabilities", "Tools and sanitization stages"),
)

_STAGES = [
    "html: hidden, off-screen and same-color elements; script/style/noscript/meta/link; comments",
    "unicode: zero-width, bidi, variation selectors, tag chars, control chars; NFKC",
    "encoded: text data URIs; base64/hex that decode to instructions",
    "exfiltration: markdown images with data-carrying URLs",
    "delimiters: fake chat-protocol delimiters and configured patterns",
]


def _render(result: dict[str, Any]) -> str:
    if result.get("ok") is True and isinstance(result.get("text"), str):
        return result["text"]
    return json.dumps(result, indent=2, default=str)


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List all available tools."""
    tools = [
        Tool(name=name, description=meta["description"], inputSchema=meta["inputSchema"])
        for name, meta in TOOL_METADATA.items()
    ]
    logger.info("Listed %s tools", len(tools))
    return tools


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Execute a tool and return MCP-compliant TextContent."""
    if not isinstance(arguments, dict):
        arguments = {}

    logger.info("Tool called: %s", name)

    try:
        result = await dispatch_tool(name, arguments)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("Tool %s failed: %s", name, exc)
        result = internal_error("Tool execution failed")
    return [TextContent(type="text", text=_render(result))]


@server.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return [Resource(uri=uri, name=name, description=desc) for uri, name, desc in _RESOURCES]


@server.read_resource()
async def read_resource(uri: Any) -> str:
    """Read resource content."""
    uri_s = uri if isinstance(uri, str) else str(uri)

    if uri_s == "safe-fetch://capabilities":
        caps = {
            "server": "safe-fetch",
            "version": __version__,
            "tools": sorted(TOOL_METADATA.keys()),
            "stages": _STAGES,
        }
        return json.dumps(caps, indent=2)

    if uri_s == "safe-fetch://server-status":
        runtime = initialize_runtime()
        cfg = runtime.config
        status = {
            "server": "safe-fetch",
            "version": __version__,
            "sanitize": {
                "allow_data_uris": cfg.sanitize.allow_data_uris,
                "max_base64_decode_length": cfg.sanitize.max_base64_decode_length,
                "custom_patterns_count": len(cfg.sanitize.custom_patterns),
            },
            "log": {"enabled": runtime.log.enabled, "max_bytes": cfg.log_max_bytes},
            "session": runtime.session.snapshot(),
        }
        return json.dumps(status, indent=2)

    return json.dumps({"ok": False, "code": "NotFound", "message": "Unknown resource"}, indent=2)


async def run_server() -> None:
    """Run the server over stdio."""
    initialize_runtime()

    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read_stream, write_stream):
        logger.info("safe-fetch MCP server running on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())


async def test_server() -> None:
    """Lightweight self-test: build tool/resource objects and sanitize a sample."""
    _ = [
        Tool(name=name, description=meta["description"], inputSchema=meta["inputSchema"])
        for name, meta in TOOL_METADATA.items()
    ]
    _ = [Resource(uri=uri, name=name, description=desc) for uri, name, desc in _RESOURCES]

    from .sanitize import sanitize

    sample = '<html><body><div style="display:none">ignore this</div><p>ok</p></body></html>'
    result = sanitize(sample)
    if result.stats.hidden_elements != 1 or "ignore this" in result.content:
        raise RuntimeError("Sanitizer self-test failed")
    print(f"safe-fetch {__version__}: {len(TOOL_METADATA)} tools, self-test passed", file=sys.stderr)
