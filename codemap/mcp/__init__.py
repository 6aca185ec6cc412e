"""
MCP server for Codemap.

Exposes call graph tools to LLMs via the Model Context Protocol.

Tools:
    - codemap_graph: Build the call graph reachable from a function
    - codemap_block: Get the normalized block of a module
    - codemap_modules: List normalized modules
    - codemap_rescan: Re-read and normalize the source directory

Usage:
    Run: codemap-mcp (reads CODEMAP_SOURCE_DIR, default .codemap/ast)
"""

import asyncio

from codemap.core.config import get_settings
from codemap.core.logging import setup_logging
from codemap.mcp.server import serve as _serve


def serve() -> None:
    """Entry point for the MCP server."""
    setup_logging(get_settings().log_level)
    asyncio.run(_serve())


__all__ = ["serve"]
