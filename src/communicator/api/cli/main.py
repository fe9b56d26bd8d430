"""Communicator CLI entry point."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import structlog
import typer
from rich.console import Console

from communicator.core.domain.errors import ChannelStartupError, ConfigError

app = typer.Typer(
    name="mcp-communicator-telegram",
    help="MCP server that lets an agent ask, notify and send files over Telegram",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
# stdout belongs to the MCP transport while serving
err_console = Console(stderr=True)


@app.callback()
def main(
    ctx: typer.Context,
    env_file: Optional[Path] = typer.Option(
        None, "--env-file", "-e", help="Read settings from this .env file"
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """Telegram Communicator for MCP agents."""
    ctx.obj = {"env_file": env_file, "debug": debug}


@app.command()
def serve(
    ctx: typer.Context,
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Seconds to wait for an answer before giving up"
    ),
    strict: Optional[bool] = typer.Option(
        None,
        "--strict/--no-strict",
        help="Reject unthreaded replies while several questions are pending",
    ),
):
    """Run the MCP server over stdio."""
    from communicator.api.mcp_server import run_server
    from communicator.infrastructure.config_loader import load_settings
    from communicator.infrastructure.logging_config import configure_logging

    global_opts = ctx.obj or {}
    try:
        settings = load_settings(
            global_opts.get("env_file"),
            ask_timeout_seconds=timeout,
            strict_replies=strict,
            log_level="DEBUG" if global_opts.get("debug") else None,
        )
    except ConfigError as e:
        err_console.print(f"[bold red]Configuration error:[/bold red] {e.message}")
        raise typer.Exit(code=1)

    configure_logging(settings.log_level, settings.log_format)
    logger = structlog.get_logger(__name__)

    try:
        asyncio.run(run_server(settings))
    except ChannelStartupError as e:
        logger.error("startup_failed", error=e.message)
        err_console.print(f"[bold red]Failed to initialize bot, exiting:[/bold red] {e.message}")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        logger.info("interrupted")


@app.command()
def check(ctx: typer.Context):
    """Verify the bot token and show which bot and chat are configured."""
    from communicator.infrastructure.config_loader import load_settings
    from communicator.infrastructure.logging_config import configure_logging

    global_opts = ctx.obj or {}
    try:
        settings = load_settings(
            global_opts.get("env_file"),
            log_level="DEBUG" if global_opts.get("debug") else None,
        )
    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e.message}")
        raise typer.Exit(code=1)

    configure_logging(settings.log_level, settings.log_format)

    try:
        username = asyncio.run(_check_bot(settings.telegram_token.get_secret_value()))
    except ChannelStartupError as e:
        console.print(f"[bold red]Bot check failed:[/bold red] {e.message}")
        raise typer.Exit(code=1)

    console.print(f"[bold green]Bot OK:[/bold green] @{username}")
    console.print(f"[bold blue]Operator chat:[/bold blue] [cyan]{settings.chat_id}[/cyan]")


async def _check_bot(token: str) -> str | None:
    from communicator.infrastructure.communication.telegram_channel import TelegramChannel

    channel = TelegramChannel(bot_token=token)
    try:
        return await channel.verify()
    finally:
        await channel.stop()


@app.command()
def version():
    """Show Communicator version."""
    from communicator import __version__

    console.print(f"[bold blue]Version:[/bold blue] [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
