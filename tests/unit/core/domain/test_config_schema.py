"""Tests for CommunicatorSettings validation."""

import pytest
from pydantic import ValidationError

from communicator.core.domain.config_schema import (
    DEFAULT_MAX_ARCHIVE_BYTES,
    CommunicatorSettings,
)


def _settings(**overrides) -> CommunicatorSettings:
    data = {"telegram_token": "123:abc", "chat_id": "4242"}
    data.update(overrides)
    return CommunicatorSettings.model_validate(data)


class TestCommunicatorSettings:
    def test_defaults(self) -> None:
        settings = _settings()
        assert settings.telegram_token.get_secret_value() == "123:abc"
        assert settings.ask_timeout_seconds is None
        assert settings.strict_replies is False
        assert settings.max_archive_bytes == DEFAULT_MAX_ARCHIVE_BYTES == 2 * 1024**3
        assert settings.log_level == "INFO"
        assert settings.log_format == "console"

    def test_token_is_not_leaked_in_repr(self) -> None:
        assert "123:abc" not in repr(_settings())

    def test_numeric_chat_id_is_normalized(self) -> None:
        assert _settings(chat_id=4242).chat_id == "4242"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"chat_id": "  "},
            {"telegram_token": ""},
            {"ask_timeout_seconds": 0},
            {"max_archive_bytes": -1},
            {"log_level": "TRACE"},
            {"log_format": "xml"},
            {"unknown_field": True},
        ],
    )
    def test_invalid_values_rejected(self, overrides) -> None:
        with pytest.raises(ValidationError):
            _settings(**overrides)

    def test_log_settings_normalized(self) -> None:
        settings = _settings(log_level="debug", log_format="JSON")
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "json"
