"""Protocol definitions for the chat channel and the project archiver."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from communicator.core.domain.question import ArchiveArtifact, InboundMessage

InboundHandler = Callable[[InboundMessage], object]


class ChannelAdapterProtocol(Protocol):
    """Outbound messaging and connectivity status of a chat channel.

    Inbound messages are pushed to the registered ``InboundHandler`` one at
    a time and in delivery order.
    """

    def set_message_handler(self, handler: InboundHandler) -> None:
        """Register the callback that receives every inbound message."""
        ...

    @property
    def is_ready(self) -> bool:
        """Whether ``start()`` succeeded and the channel accepts sends."""
        ...

    async def start(self) -> None:
        """Verify credentials and begin receiving messages.

        Raises:
            ChannelStartupError: If the channel cannot be initialized.
        """
        ...

    async def stop(self) -> None:
        """Stop receiving messages and release network resources."""
        ...

    async def send_message(
        self,
        chat_id: str,
        text: str,
        *,
        force_reply: bool = False,
    ) -> int | None:
        """Send a text message and return its channel message id.

        Args:
            chat_id: Target chat.
            text: Message text.
            force_reply: Ask the client to open a reply composer for it.

        Raises:
            ChannelError: If the channel rejects the message.
        """
        ...

    async def send_document(
        self,
        chat_id: str,
        path: Path,
        *,
        filename: str | None = None,
        content_type: str = "application/octet-stream",
    ) -> None:
        """Upload a file to the chat.

        Raises:
            ChannelError: If the upload fails.
        """
        ...


class ArchiverProtocol(Protocol):
    """Packages a directory into a single compressed artifact."""

    def create(self, directory: Path) -> ArchiveArtifact:
        """Archive ``directory`` and return the written artifact.

        Raises:
            ArchiveError: If the directory cannot be archived.
        """
        ...
