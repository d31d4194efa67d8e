#!/usr/bin/env python3
"""
Toolkit Server - MCP dispatch server for the text tool catalog

Wraps the SDK's low-level Server: tools/list is answered from the catalog and
tools/call resolves the named tool, validates its arguments and runs the
handler. Failures raise McpError so the session answers with a JSON-RPC error
object instead of an isError tool result. Transports only supply the streams.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from mcp.server import Server
from mcp.server.models import InitializationOptions
from mcp.shared.exceptions import McpError
from mcp.types import CallToolRequest, CallToolResult, ServerResult, TextContent, Tool

from toolkit_config import config
from toolkit_registry import ToolCatalog, build_catalog
from toolkit_validation import method_not_found

logger = logging.getLogger(__name__)


def payload_to_text(payload: Dict[str, Any]) -> str:
    """Serialize a handler payload the way tool results carry it"""
    return json.dumps(payload, indent=2, ensure_ascii=False)


class ToolkitServer:
    """
    Dispatch server shared by every transport and session.

    Holds no per-session state; the SDK runs one protocol session per stream
    pair and every call is at-most-once.
    """

    def __init__(self,
                 catalog: Optional[ToolCatalog] = None,
                 name: Optional[str] = None,
                 version: Optional[str] = None):
        self.catalog = catalog if catalog is not None else build_catalog()
        self.name = name or config.server.name
        self.version = version or config.server.version

        self.server = Server(self.name, version=self.version)
        self._register_handlers()

    def _register_handlers(self):
        @self.server.list_tools()
        async def list_tools() -> List[Tool]:
            return self.list_tools()

        # Registered directly rather than through @server.call_tool(), which
        # turns every exception into an isError result
        self.server.request_handlers[CallToolRequest] = self._handle_call_tool

    async def _handle_call_tool(self, request: CallToolRequest) -> ServerResult:
        name = request.params.name
        try:
            result = self.call_tool(name, request.params.arguments)
        except McpError as e:
            logger.info(f"Tool {name} failed: {e.error.message}")
            raise
        return ServerResult(result)

    # ----------------- Tool operations -----------------

    def list_tools(self) -> List[Tool]:
        """Every registered tool in registration order"""
        return [definition.to_mcp_tool() for definition in self.catalog]

    def call_tool(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> CallToolResult:
        """
        Run one tool.

        Raises:
            McpError: MethodNotFound for unknown tools, InvalidParams for
                schema violations or rejected input, InternalError otherwise
        """
        definition = self.catalog.get(name)
        if definition is None:
            raise method_not_found(f"Unknown tool: {name}")

        logger.debug(f"Calling tool {name}")
        payload = definition.invoke(arguments)
        return CallToolResult(content=[TextContent(type="text", text=payload_to_text(payload))])

    # ----------------- Sessions -----------------

    def create_initialization_options(self) -> InitializationOptions:
        return self.server.create_initialization_options()

    async def run(self, read_stream, write_stream):
        """Serve one protocol session over a transport's stream pair until it closes"""
        await self.server.run(read_stream, write_stream, self.create_initialization_options())
