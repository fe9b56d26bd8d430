"""Telegram Communicator MCP Server.

Provides tools for talking to the human operator over Telegram:
- ask_user: Ask a question and wait for the operator's reply
- notify_user: Send a one-way notification
- send_file: Send a file from the local filesystem
- zip_project: Zip a project directory (honoring .gitignore) and send it
"""

from __future__ import annotations

from typing import Any

import structlog
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, TextContent, Tool

from communicator import __version__
from communicator.application.correlation_engine import CorrelationEngine
from communicator.application.tool_dispatcher import ToolDispatcher
from communicator.core.domain.config_schema import CommunicatorSettings
from communicator.core.domain.errors import CommunicatorError
from communicator.infrastructure.archive.project_archiver import ProjectArchiver
from communicator.infrastructure.communication.telegram_channel import TelegramChannel

logger = structlog.get_logger(__name__)

SERVER_NAME = "mcp-communicator-telegram"

# Tool definitions
TOOLS = [
    Tool(
        name="ask_user",
        description=(
            "Ask the user a question via Telegram and wait for their response. "
            "Blocks until the user replies."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "question": {
                    "type": "string",
                    "description": "The question to ask the user",
                }
            },
            "required": ["question"],
        },
    ),
    Tool(
        name="notify_user",
        description="Send a notification message to the user via Telegram (no reply expected).",
        inputSchema={
            "type": "object",
            "properties": {
                "message": {
                    "type": "string",
                    "description": "The message to send",
                }
            },
            "required": ["message"],
        },
    ),
    Tool(
        name="send_file",
        description="Send a file to the user via Telegram.",
        inputSchema={
            "type": "object",
            "properties": {
                "filePath": {
                    "type": "string",
                    "description": "Path to the file to send",
                }
            },
            "required": ["filePath"],
        },
    ),
    Tool(
        name="zip_project",
        description=(
            "Zip a project directory (respecting .gitignore) and send the archive "
            "to the user via Telegram. Archives larger than 2GB are rejected."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "directory": {
                    "type": "string",
                    "description": "Directory to zip (defaults to the server's working directory)",
                }
            },
        },
    ),
]


def _text_result(text: str, *, is_error: bool = False) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error)


async def dispatch_tool(
    dispatcher: ToolDispatcher,
    name: str,
    arguments: dict[str, Any] | None,
) -> CallToolResult:
    """Execute a tool call against ``dispatcher`` and wrap the outcome."""
    arguments = arguments or {}
    logger.info("tool_called", tool=name, arguments=sorted(arguments))

    try:
        if name == "ask_user":
            text = await dispatcher.ask_user(_require_str(arguments, "question"))
        elif name == "notify_user":
            text = await dispatcher.notify_user(_require_str(arguments, "message"))
        elif name == "send_file":
            text = await dispatcher.send_file(_require_str(arguments, "filePath"))
        elif name == "zip_project":
            text = await dispatcher.zip_project(arguments.get("directory") or None)
        else:
            logger.warning("tool_unknown", tool=name)
            return _text_result(f"Unknown tool: {name}", is_error=True)
    except CommunicatorError as e:
        logger.warning("tool_failed", tool=name, code=e.code, error=e.message)
        return _text_result(e.message, is_error=True)
    except Exception as e:
        logger.exception("tool_error", tool=name, error=str(e))
        return _text_result(f"{name} failed: {e}", is_error=True)

    logger.info("tool_completed", tool=name)
    return _text_result(text)


def _require_str(arguments: dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value:
        raise CommunicatorError(
            message=f"Missing required parameter: {key}", code="invalid_arguments"
        )
    return value


def create_server(dispatcher: ToolDispatcher) -> Server:
    """Create the MCP server bound to ``dispatcher``."""
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """Return list of available tools."""
        return TOOLS

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
        """Execute a tool and return results."""
        return await dispatch_tool(dispatcher, name, arguments)

    return server


async def run_server(settings: CommunicatorSettings) -> None:
    """Start the Telegram channel and serve MCP over stdio until shutdown.

    Raises:
        ChannelStartupError: If the bot cannot be initialized. Nothing is
            served in that case.
    """
    channel = TelegramChannel(
        bot_token=settings.telegram_token.get_secret_value(),
        poll_timeout=settings.poll_timeout,
    )
    engine = CorrelationEngine(
        channel,
        settings.chat_id,
        ask_timeout=settings.ask_timeout_seconds,
        strict_fallback=settings.strict_replies,
    )
    channel.set_message_handler(engine.handle_inbound_message)
    dispatcher = ToolDispatcher(
        channel,
        engine,
        ProjectArchiver(),
        max_archive_bytes=settings.max_archive_bytes,
    )
    server = create_server(dispatcher)

    await channel.start()
    try:
        logger.info("mcp_server.starting", name=SERVER_NAME, version=__version__)
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream, write_stream, server.create_initialization_options()
            )
    finally:
        await channel.stop()
        engine.close()
        logger.info("mcp_server.stopped")
