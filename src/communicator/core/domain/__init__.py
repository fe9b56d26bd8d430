"""Domain models and errors."""

from communicator.core.domain.errors import (
    ArchiveError,
    ArchiveTooLargeError,
    ChannelError,
    ChannelNotReadyError,
    ChannelStartupError,
    CommunicatorError,
    ConfigError,
    FileTransferError,
    QuestionTimeoutError,
)
from communicator.core.domain.question import (
    ArchiveArtifact,
    InboundMessage,
    PendingQuestion,
    extract_question_id,
    format_question,
    generate_question_id,
)

__all__ = [
    "ArchiveArtifact",
    "ArchiveError",
    "ArchiveTooLargeError",
    "ChannelError",
    "ChannelNotReadyError",
    "ChannelStartupError",
    "CommunicatorError",
    "ConfigError",
    "FileTransferError",
    "InboundMessage",
    "PendingQuestion",
    "QuestionTimeoutError",
    "extract_question_id",
    "format_question",
    "generate_question_id",
]
