#!/usr/bin/env python3
"""
Pattern Hub MCP Server
Exposes pattern search, details and installation over MCP stdio.
"""

import asyncio
import itertools
from typing import Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.server.models import InitializationOptions
from mcp.server.lowlevel import NotificationOptions
from mcp import types

from pattern_hub import __version__, __package_name__
from pattern_hub.config import ConfigManager
from pattern_hub.mcp_types import ToolContext
from pattern_hub.tools import ToolRegistry, PatternAPIClient, SearchTool, GetTool, InstallTool
from pattern_hub.utils import Logger


class PatternHubMCPServer:
    """MCP server for the Pattern Hub registry."""

    def __init__(self, api_client: Optional[PatternAPIClient] = None):
        self.config = ConfigManager.get_instance()
        config = self.config.get()

        self.server = Server(__package_name__)
        self.logger = Logger(name=__package_name__, level=config.log_level)
        self.api_client = api_client
        self.tool_registry = ToolRegistry(self.logger)
        self._request_ids = itertools.count(1)

        self._setup_handlers()

    def _setup_handlers(self):
        """Set up MCP protocol request handlers using decorators."""

        @self.server.list_tools()
        async def handle_list_tools() -> list[types.Tool]:
            return self.tool_registry.getToolSchemas()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: dict) -> list[types.TextContent]:
            return await self.call_tool(name, arguments)

    async def call_tool(self, name: str, arguments: Optional[dict]) -> list[types.TextContent]:
        """Run a tool. Tool failures come back as text; unknown tools raise ValueError."""
        if not self.tool_registry.hasTool(name):
            self.logger.error(f"Tool not found: {name}")
            raise ValueError(f"Tool '{name}' not found")

        context = ToolContext(
            userId="local",
            requestId=f"req_{next(self._request_ids)}",
            timestamp=asyncio.get_running_loop().time(),
            toolName=name
        )
        execution = await self.tool_registry.execute(name, arguments or {}, context)

        if execution.result is not None:
            return [types.TextContent(type="text", text=c.text) for c in execution.result.content]

        message = execution.error.message if execution.error else "Unknown error"
        return [types.TextContent(type="text", text=f"❌ {message}")]

    def _register_tools(self):
        """Register search_patterns, get_pattern and install_pattern."""
        client = self.api_client or PatternAPIClient(self.config.get().api_url)
        for tool in (SearchTool(self.logger, client), GetTool(self.logger, client), InstallTool(self.logger, client)):
            self.tool_registry.register(tool)

        self.logger.info(f"Registered {len(self.tool_registry.listTools())} tools against {client.base_url}")

    async def start(self):
        """Start the MCP server."""
        try:
            await self.config.load()
            self._register_tools()

            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name=__package_name__,
                        server_version=__version__,
                        capabilities=self.server.get_capabilities(
                            notification_options=NotificationOptions(),
                            experimental_capabilities={}
                        ),
                    ),
                )
        except Exception as e:
            self.logger.error(f"Failed to start server: {e}")
            raise


async def run_stdio():
    """Run in stdio mode."""
    server = PatternHubMCPServer()
    await server.start()


def main():
    asyncio.run(run_stdio())


if __name__ == "__main__":
    main()
