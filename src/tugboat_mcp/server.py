"""MCP server exposing the Tugboat API as tools and resources."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import Resource, ResourceTemplate, TextContent, Tool

from tugboat_mcp import resources, tool_handlers
from tugboat_mcp.config import Config
from tugboat_mcp.context import ServerContext, create_context
from tugboat_mcp.exceptions import ConfigurationError
from tugboat_mcp.operations import list_operations
from tugboat_mcp.tools import build_tools

SERVER_NAME = "tugboat-mcp"

logger = logging.getLogger("tugboat_mcp")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _configure_logging(config: Config) -> None:
    """Send logs to a file for stdio (stdout carries the protocol), stderr for http."""
    level = getattr(logging, config.log_level, logging.INFO)
    logging.raiseExceptions = False
    if config.transport == "stdio":
        try:
            config.log_file.parent.mkdir(parents=True, exist_ok=True)
            handler: logging.Handler = logging.FileHandler(config.log_file)
        except OSError as exc:
            logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
            logger.warning("Cannot open log file %s: %s", config.log_file, exc)
            return
        logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[handler])
        return
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def build_server(context: ServerContext) -> Server:
    """Create the MCP server with tool and resource handlers bound to ``context``."""
    server: Server = Server(SERVER_NAME)
    tools = build_tools(list_operations())

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return tools

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        return await tool_handlers.handle_tool(
            name,
            arguments,
            context=context,
            logger=logger,
        )

    @server.list_resources()
    async def list_resources() -> list[Resource]:
        return resources.list_resources()

    @server.list_resource_templates()
    async def list_resource_templates() -> list[ResourceTemplate]:
        return resources.list_resource_templates()

    @server.read_resource()
    async def read_resource(uri: Any) -> list[ReadResourceContents]:
        return [await resources.read_resource(str(uri), context)]

    return server


async def run_stdio(context: ServerContext, server: Server) -> None:
    """Run the MCP server over stdio until the client disconnects."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


async def run(config: Config) -> None:
    context = create_context(config)
    server = build_server(context)
    logger.info("Starting Tugboat MCP server (transport=%s)", config.transport)
    try:
        if config.transport == "http":
            from tugboat_mcp.http_app import run_http

            await run_http(context, server)
        else:
            await run_stdio(context, server)
    finally:
        await context.aclose()
        logger.info("Tugboat MCP server stopped")


def main() -> None:
    """CLI entry point: load configuration, then serve on the selected transport."""
    try:
        config = Config.from_env()
    except ConfigurationError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        sys.exit(1)
    _configure_logging(config)
    asyncio.run(run(config))


if __name__ == "__main__":
    main()
