"""Test configuration and shared fixtures."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from communicator.application.correlation_engine import CorrelationEngine
from communicator.core.domain.question import InboundMessage

OPERATOR_CHAT_ID = "4242"


class FakeChannel:
    """In-memory channel adapter recording every outbound call."""

    def __init__(self) -> None:
        self.ready = True
        self.sent: list[tuple[str, str, bool]] = []
        self.documents: list[dict[str, Any]] = []
        self.send_error: Exception | None = None
        self.handler: Any = None

    def set_message_handler(self, handler: Any) -> None:
        self.handler = handler

    @property
    def is_ready(self) -> bool:
        return self.ready

    async def start(self) -> None:
        self.ready = True

    async def stop(self) -> None:
        self.ready = False

    async def send_message(self, chat_id: str, text: str, *, force_reply: bool = False) -> int:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((chat_id, text, force_reply))
        return len(self.sent)

    async def send_document(
        self,
        chat_id: str,
        path: Path,
        *,
        filename: str | None = None,
        content_type: str = "application/octet-stream",
    ) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.documents.append(
            {
                "chat_id": chat_id,
                "path": Path(path),
                "filename": filename,
                "content_type": content_type,
            }
        )


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def engine(channel: FakeChannel) -> CorrelationEngine:
    engine = CorrelationEngine(channel, OPERATOR_CHAT_ID)
    channel.set_message_handler(engine.handle_inbound_message)
    return engine


def _operator_message(
    text: str | None,
    *,
    replied_to_text: str | None = None,
    chat_id: str = OPERATOR_CHAT_ID,
) -> InboundMessage:
    """Build an inbound message as if typed by the operator."""
    return InboundMessage(chat_id=chat_id, text=text, replied_to_text=replied_to_text)


async def _wait_for_sent(channel: FakeChannel, count: int) -> None:
    """Yield to the loop until ``count`` messages went through ``channel``."""
    for _ in range(100):
        if len(channel.sent) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} sent messages, got {len(channel.sent)}")


@pytest.fixture
def make_message():
    return _operator_message


@pytest.fixture
def wait_for_sent():
    return _wait_for_sent
