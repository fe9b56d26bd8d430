"""Tests for the CLI entry point."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from communicator import __version__
from communicator.api.cli.main import app
from communicator.core.domain.config_schema import CommunicatorSettings
from communicator.core.domain.errors import ChannelStartupError, ConfigError

runner = CliRunner()


@pytest.fixture
def settings() -> CommunicatorSettings:
    return CommunicatorSettings(telegram_token="123:abc", chat_id="4242")


class TestVersion:
    def test_prints_version(self) -> None:
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestServe:
    def test_config_error_exits_with_code_1(self) -> None:
        with patch(
            "communicator.infrastructure.config_loader.load_settings",
            side_effect=ConfigError("TELEGRAM_TOKEN and CHAT_ID are required"),
        ), patch("communicator.api.mcp_server.run_server") as run_server:
            result = runner.invoke(app, ["serve"])

        assert result.exit_code == 1
        run_server.assert_not_called()

    def test_startup_failure_exits_with_code_1(self, settings) -> None:
        with patch(
            "communicator.infrastructure.config_loader.load_settings",
            return_value=settings,
        ), patch(
            "communicator.infrastructure.logging_config.configure_logging"
        ), patch(
            "communicator.api.mcp_server.run_server",
            new=AsyncMock(side_effect=ChannelStartupError("Error initializing bot: 401")),
        ):
            result = runner.invoke(app, ["serve"])

        assert result.exit_code == 1

    def test_runs_server_with_cli_overrides(self, settings) -> None:
        load_settings = MagicMock(return_value=settings)
        run_server = AsyncMock(return_value=None)
        with patch(
            "communicator.infrastructure.config_loader.load_settings", new=load_settings
        ), patch(
            "communicator.infrastructure.logging_config.configure_logging"
        ) as configure_logging, patch(
            "communicator.api.mcp_server.run_server", new=run_server
        ):
            result = runner.invoke(
                app, ["--debug", "serve", "--timeout", "30", "--strict"]
            )

        assert result.exit_code == 0
        kwargs = load_settings.call_args.kwargs
        assert kwargs["ask_timeout_seconds"] == 30
        assert kwargs["strict_replies"] is True
        assert kwargs["log_level"] == "DEBUG"
        configure_logging.assert_called_once_with("INFO", "console")
        run_server.assert_awaited_once_with(settings)


class TestCheck:
    def test_reports_bot_and_chat(self, settings) -> None:
        with patch(
            "communicator.infrastructure.config_loader.load_settings",
            return_value=settings,
        ), patch(
            "communicator.infrastructure.logging_config.configure_logging"
        ) as configure_logging, patch(
            "communicator.api.cli.main._check_bot",
            new=AsyncMock(return_value="helper_bot"),
        ) as check_bot:
            result = runner.invoke(app, ["check"])

        assert result.exit_code == 0
        configure_logging.assert_called_once_with("INFO", "console")
        assert "@helper_bot" in result.output
        assert "4242" in result.output
        check_bot.assert_awaited_once_with("123:abc")

    def test_rejected_token_exits_with_code_1(self, settings) -> None:
        with patch(
            "communicator.infrastructure.config_loader.load_settings",
            return_value=settings,
        ), patch(
            "communicator.infrastructure.logging_config.configure_logging"
        ), patch(
            "communicator.api.cli.main._check_bot",
            new=AsyncMock(side_effect=ChannelStartupError("Error initializing bot: 401")),
        ):
            result = runner.invoke(app, ["check"])

        assert result.exit_code == 1
        assert "Bot check failed" in result.output

    def test_global_options_reach_settings_loader(self, settings, tmp_path) -> None:
        env_file = tmp_path / "bot.env"
        load_settings = MagicMock(return_value=settings)
        with patch(
            "communicator.infrastructure.config_loader.load_settings", new=load_settings
        ), patch(
            "communicator.infrastructure.logging_config.configure_logging"
        ), patch(
            "communicator.api.cli.main._check_bot",
            new=AsyncMock(return_value="helper_bot"),
        ):
            result = runner.invoke(app, ["--env-file", str(env_file), "--debug", "check"])

        assert result.exit_code == 0
        assert load_settings.call_args.args == (env_file,)
        assert load_settings.call_args.kwargs["log_level"] == "DEBUG"
