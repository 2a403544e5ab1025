"""Shakespeare MCP server.

Exposes a headless Chromium to an MCP client over stdio: navigation,
screenshots, script evaluation, computed-style inspection and viewport
control. Logs go to stderr; stdout is the JSON-RPC stream.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from contextlib import suppress
from typing import Any

import mcp.server.stdio
from mcp import types
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from shakespeare_mcp import config
from shakespeare_mcp.session import BrowserSession
from shakespeare_mcp.tools import TOOL_DESCRIPTORS, dispatch

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = config.LOG_LEVEL) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
    )


def create_server(session: BrowserSession) -> Server:
    """Build the MCP server with the tool table bound to ``session``."""
    server = Server(config.SERVER_NAME, version=config.SERVER_VERSION)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return list(TOOL_DESCRIPTORS)

    # Arguments are checked by each handler so bad input still gets an
    # "Error: ..." text reply instead of a protocol error.
    @server.call_tool(validate_input=False)
    async def handle_call_tool(
        name: str, arguments: dict[str, Any] | None
    ) -> list[types.TextContent | types.ImageContent]:
        return await dispatch(session, name, arguments)

    return server


def _install_signal_handlers(session: BrowserSession) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on Windows event loops
        with suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, _on_signal, session)


_shutdown_tasks: set[asyncio.Task] = set()


def _on_signal(session: BrowserSession) -> None:
    task = asyncio.ensure_future(shutdown(session))
    _shutdown_tasks.add(task)
    task.add_done_callback(_shutdown_tasks.discard)


async def shutdown(session: BrowserSession) -> None:
    """Close the browser and exit with status 0.

    The stdio reader stays blocked on stdin while the client holds the pipe
    open, so the process exits directly once teardown is done.
    """
    logger.info("Termination signal received, shutting down")
    try:
        await session.close()
    finally:
        logging.shutdown()
        os._exit(0)


async def serve(session: BrowserSession | None = None) -> None:
    """Serve MCP over stdio until stdin closes or the process is signalled."""
    session = session or BrowserSession()
    server = create_server(session)
    _install_signal_handlers(session)

    try:
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            logger.info("Shakespeare MCP server running on stdio")
            await server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=config.SERVER_NAME,
                    server_version=config.SERVER_VERSION,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                ),
            )
    finally:
        await session.close()


def main() -> int:
    configure_logging()
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Shutting down")
    return 0
