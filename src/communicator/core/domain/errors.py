"""Domain-specific exception types for the communicator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(eq=False)
class CommunicatorError(Exception):
    """Base exception for communicator errors."""

    message: str
    code: str = "communicator_error"
    details: Dict[str, Any] | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.details is None:
            self.details = {}


class ConfigError(CommunicatorError):
    """Error raised for configuration failures."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="config_error", details=details)


class ChannelError(CommunicatorError):
    """Error raised when a chat channel call fails."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "channel_error",
        details: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details)


class ChannelStartupError(ChannelError):
    """Error raised when the channel cannot be initialized (bad token, no network)."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message, code="channel_startup_error", details=details)


class ChannelNotReadyError(ChannelError):
    """Error raised when a tool is used before the channel is connected."""

    def __init__(
        self,
        message: str = "Telegram bot not initialized",
        *,
        details: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code="channel_not_ready", details=details)


class QuestionTimeoutError(CommunicatorError):
    """Error raised when the operator does not answer before the deadline."""

    def __init__(
        self,
        message: str,
        *,
        question_id: str | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if question_id:
            details.setdefault("question_id", question_id)
        self.question_id = question_id
        super().__init__(message=message, code="question_timeout", details=details)


class FileTransferError(CommunicatorError):
    """Error raised when a file cannot be sent."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="file_transfer_error", details=details)


class ArchiveError(CommunicatorError):
    """Error raised when a project archive cannot be built."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "archive_error",
        details: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details)


class ArchiveTooLargeError(ArchiveError):
    """Error raised when an archive exceeds the transfer size limit."""

    def __init__(
        self,
        message: str,
        *,
        size_bytes: int | None = None,
        limit_bytes: int | None = None,
        details: Dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if size_bytes is not None:
            details.setdefault("size_bytes", size_bytes)
        if limit_bytes is not None:
            details.setdefault("limit_bytes", limit_bytes)
        super().__init__(message, code="archive_too_large", details=details)
