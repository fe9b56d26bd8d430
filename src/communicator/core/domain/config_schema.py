"""
Configuration Schema Validation

Pydantic model for the communicator settings. Values come from environment
variables (see ``communicator.infrastructure.config_loader``).
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

DEFAULT_MAX_ARCHIVE_BYTES = 2 * 1024 * 1024 * 1024


class CommunicatorSettings(BaseModel):
    """Validated runtime settings."""

    model_config = ConfigDict(extra="forbid")

    telegram_token: SecretStr = Field(
        ...,
        description="Telegram Bot API token (from @BotFather)",
    )
    chat_id: str = Field(
        ...,
        description="Chat id of the single authorized operator",
    )
    ask_timeout_seconds: Optional[float] = Field(
        None,
        description="Give up on unanswered questions after this many seconds",
        gt=0,
    )
    strict_replies: bool = Field(
        False,
        description="Reject unthreaded replies while several questions are pending",
    )
    max_archive_bytes: int = Field(
        DEFAULT_MAX_ARCHIVE_BYTES,
        description="Largest archive zip_project is allowed to send",
        gt=0,
    )
    poll_timeout: int = Field(
        30,
        description="Long-polling timeout for getUpdates, in seconds",
        ge=0,
    )
    log_level: str = "INFO"
    log_format: str = "console"

    @field_validator("telegram_token", mode="before")
    @classmethod
    def require_token(cls, v: Any) -> Any:
        token = v.get_secret_value() if hasattr(v, "get_secret_value") else v
        if not str(token or "").strip():
            raise ValueError("telegram_token must not be empty")
        return v

    @field_validator("chat_id", mode="before")
    @classmethod
    def normalize_chat_id(cls, v: Any) -> str:
        chat_id = str(v if v is not None else "").strip()
        if not chat_id:
            raise ValueError("chat_id must not be empty")
        return chat_id

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {sorted(allowed)}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v.lower() not in ("console", "json"):
            raise ValueError("Log format must be 'console' or 'json'")
        return v.lower()
