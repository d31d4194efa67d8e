#!/usr/bin/env python3
"""
Toolkit Stdio Transport - Serves one MCP session over stdin/stdout
"""

import logging

import anyio
from mcp.server.stdio import stdio_server

from toolkit_server import ToolkitServer

logger = logging.getLogger(__name__)


async def serve_stdio(server: ToolkitServer, stdin=None, stdout=None):
    """
    Run the dispatch server until stdin reaches end of input.

    stdout carries only protocol messages; logging goes elsewhere. stdin and
    stdout default to the process streams.
    """
    logger.info(f"{server.name} v{server.version} listening on stdio")

    async with stdio_server(stdin, stdout) as (read_stream, write_stream):
        await server.run(read_stream, write_stream)

    logger.info("Stdio transport closed")


def run_stdio(server: ToolkitServer) -> None:
    """Serve the process's stdin/stdout until EOF"""
    anyio.run(serve_stdio, server)
