"""Load ``CommunicatorSettings`` from the environment.

A ``.env`` file (working directory by default) is read first; variables that
are already set in the process environment take precedence over it.

Variables:
    TELEGRAM_TOKEN (required): Bot API token.
    CHAT_ID (required): Chat id of the authorized operator.
    COMMUNICATOR_ASK_TIMEOUT_SECONDS: Give up on unanswered questions.
    COMMUNICATOR_STRICT_REPLIES: Reject ambiguous unthreaded replies.
    COMMUNICATOR_MAX_ARCHIVE_BYTES: Size limit for zip_project.
    COMMUNICATOR_POLL_TIMEOUT: getUpdates long-polling timeout.
    COMMUNICATOR_LOG_LEVEL: DEBUG, INFO, WARNING or ERROR.
    COMMUNICATOR_LOG_FORMAT: console or json.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from communicator.core.domain.config_schema import CommunicatorSettings
from communicator.core.domain.errors import ConfigError

_OPTIONAL_VARIABLES = {
    "COMMUNICATOR_ASK_TIMEOUT_SECONDS": "ask_timeout_seconds",
    "COMMUNICATOR_STRICT_REPLIES": "strict_replies",
    "COMMUNICATOR_MAX_ARCHIVE_BYTES": "max_archive_bytes",
    "COMMUNICATOR_POLL_TIMEOUT": "poll_timeout",
    "COMMUNICATOR_LOG_LEVEL": "log_level",
    "COMMUNICATOR_LOG_FORMAT": "log_format",
}


def load_settings(
    env_file: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> CommunicatorSettings:
    """Build validated settings from environment variables.

    Args:
        env_file: Explicit ``.env`` path. Defaults to ``.env`` in the working
            directory when it exists.
        environ: Variables to read instead of ``os.environ`` (skips ``.env``).
        **overrides: Field values that win over the environment (CLI flags).
            ``None`` values are ignored.

    Raises:
        ConfigError: If a required variable is missing or a value is invalid.
    """
    if environ is None:
        if env_file is not None and not env_file.is_file():
            raise ConfigError(f"Env file not found: {env_file}")
        load_dotenv(dotenv_path=env_file or Path.cwd() / ".env", override=False)
        environ = os.environ

    token = environ.get("TELEGRAM_TOKEN", "").strip()
    chat_id = environ.get("CHAT_ID", "").strip()
    if not token or not chat_id:
        raise ConfigError(
            "TELEGRAM_TOKEN and CHAT_ID are required in the environment or .env file",
            details={
                "missing": [
                    name
                    for name, value in (("TELEGRAM_TOKEN", token), ("CHAT_ID", chat_id))
                    if not value
                ]
            },
        )

    data: dict[str, Any] = {"telegram_token": token, "chat_id": chat_id}
    for variable, field_name in _OPTIONAL_VARIABLES.items():
        value = environ.get(variable, "").strip()
        if value:
            data[field_name] = value
    data.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return CommunicatorSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
