"""MCP server implementation for Codemap."""

from __future__ import annotations

import asyncio
import json
import threading
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from codemap.core.codemap import Codemap
from codemap.core.exceptions import CodemapError
from codemap.core.graph import block_to_dict, graph_to_dict
from codemap.core.logging import get_logger

logger = get_logger(__name__)

server = Server("codemap")

_codemap: Codemap | None = None
_codemap_lock = threading.Lock()


def _get_codemap() -> Codemap:
    """Get the shared facade, scanning the configured source directory on first use."""
    global _codemap
    with _codemap_lock:
        if _codemap is None:
            _codemap = Codemap.from_directory()
        return _codemap


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="codemap_graph",
            description=(
                "Build the call graph reachable from a function, given as module, "
                "function name and arity. Returns text, a Mermaid diagram or JSON."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "module": {
                        "type": "string",
                        "description": "Module of the start function, e.g. MyApp.Server",
                    },
                    "function": {
                        "type": "string",
                        "description": "Name of the start function",
                    },
                    "arity": {
                        "type": "integer",
                        "description": "Arity of the start function",
                    },
                    "format": {
                        "type": "string",
                        "enum": ["text", "mermaid", "json"],
                        "description": "Output format (default: json)",
                        "default": "json",
                    },
                    "max_nodes": {
                        "type": "integer",
                        "description": "Stop after this many nodes (optional)",
                    },
                    "max_edges": {
                        "type": "integer",
                        "description": "Stop after this many edges (optional)",
                    },
                },
                "required": ["module", "function", "arity"],
            },
        ),
        Tool(
            name="codemap_block",
            description=(
                "Get the normalized block of a module: its function clauses, "
                "their arities and every call each clause makes."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "module": {
                        "type": "string",
                        "description": "Module name, e.g. MyApp.Server",
                    },
                },
                "required": ["module"],
            },
        ),
        Tool(
            name="codemap_modules",
            description="List all normalized modules.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
        Tool(
            name="codemap_rescan",
            description="Re-read the source directory and normalize every module again.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
    ]


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        if name == "codemap_graph":
            result = _handle_graph(
                arguments["module"],
                arguments["function"],
                arguments["arity"],
                arguments.get("format", "json"),
                arguments.get("max_nodes"),
                arguments.get("max_edges"),
            )
        elif name == "codemap_block":
            result = _handle_block(arguments["module"])
        elif name == "codemap_modules":
            result = _handle_modules()
        elif name == "codemap_rescan":
            result = await _handle_rescan()
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except CodemapError as e:
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]
    except Exception as e:
        logger.exception("Tool %s failed", name)
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]


def _handle_graph(
    module: str,
    function: str,
    arity: int,
    output_format: str,
    max_nodes: int | None,
    max_edges: int | None,
) -> dict[str, Any]:
    """Handle codemap_graph tool."""
    cm = _get_codemap()
    graph = cm.build_call_graph(module, function, arity, max_nodes=max_nodes, max_edges=max_edges)

    if output_format == "text":
        return {"graph": cm.render_text(graph), "truncated": graph.truncated}
    if output_format == "mermaid":
        return {"diagram": cm.render_diagram(graph), "truncated": graph.truncated}
    return graph_to_dict(graph)


def _handle_block(module: str) -> dict[str, Any]:
    """Handle codemap_block tool."""
    return block_to_dict(_get_codemap().get_block(module))


def _handle_modules() -> dict[str, Any]:
    """Handle codemap_modules tool."""
    return {"modules": sorted(_get_codemap().list_modules())}


async def _handle_rescan() -> dict[str, Any]:
    """Handle codemap_rescan tool."""
    stats = await asyncio.wrap_future(_get_codemap().rescan())
    return {
        "modules": stats.modules,
        "functions": stats.functions,
        "calls": stats.calls,
        "failed": stats.failed,
        "removed": stats.removed,
        "errors": stats.errors,
    }


async def serve() -> None:
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
