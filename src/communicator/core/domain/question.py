"""Domain models for operator questions and inbound chat messages.

Outbound questions carry their correlation id as a marker line at the very
start of the message text::

    #k3x9qa
    Which database should the migration target?

When the operator answers with the chat client's reply gesture, the quoted
message comes back with the inbound update and the marker identifies the
question being answered.
"""

from __future__ import annotations

import asyncio
import re
import secrets
import string
import time
from collections.abc import Container
from dataclasses import dataclass, field
from pathlib import Path

QUESTION_ID_ALPHABET = string.ascii_lowercase + string.digits
QUESTION_ID_LENGTH = 6

_MARKER_PATTERN = re.compile(r"#([a-z0-9]+)\n")


def generate_question_id(taken: Container[str] = ()) -> str:
    """Return a short lowercase alphanumeric id not contained in ``taken``."""
    while True:
        question_id = "".join(
            secrets.choice(QUESTION_ID_ALPHABET) for _ in range(QUESTION_ID_LENGTH)
        )
        if question_id not in taken:
            return question_id


def format_question(question_id: str, question: str) -> str:
    """Prefix ``question`` with the correlation marker line for ``question_id``."""
    return f"#{question_id}\n{question}"


def extract_question_id(quoted_text: str | None) -> str | None:
    """Return the correlation id embedded in a quoted message, if any."""
    if not quoted_text:
        return None
    match = _MARKER_PATTERN.search(quoted_text)
    if match is None:
        return None
    return match.group(1)


@dataclass
class PendingQuestion:
    """A question sent to the operator that is still waiting for its answer.

    Attributes:
        id: Correlation id embedded in the outbound message.
        question: The question body as sent (without the marker line).
        future: Single-use resolver; completed with the answer text.
        created_at: ``time.monotonic()`` timestamp of registration.
    """

    id: str
    question: str
    future: asyncio.Future[str]
    created_at: float = field(default_factory=time.monotonic)

    @property
    def age_seconds(self) -> float:
        return time.monotonic() - self.created_at


@dataclass(frozen=True)
class InboundMessage:
    """Normalized inbound chat message.

    Attributes:
        chat_id: Chat the message was posted in.
        text: Message text; ``None`` for stickers, photos and the like.
        replied_to_text: Text of the message this one replies to, if any.
        message_id: Channel message id.
        sender_id: Id of the user who sent the message.
    """

    chat_id: str
    text: str | None
    replied_to_text: str | None = None
    message_id: int | None = None
    sender_id: str | None = None


@dataclass(frozen=True)
class ArchiveArtifact:
    """A compressed project archive written to disk."""

    path: Path
    size_bytes: int
    file_count: int = 0
