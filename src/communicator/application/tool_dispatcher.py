"""Agent-facing operations: ask, notify, send a file, send a project archive."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from communicator.application.correlation_engine import CorrelationEngine
from communicator.core.domain.config_schema import DEFAULT_MAX_ARCHIVE_BYTES
from communicator.core.domain.errors import (
    ArchiveTooLargeError,
    ChannelNotReadyError,
    FileTransferError,
)
from communicator.core.domain.question import ArchiveArtifact
from communicator.core.interfaces.channel import ArchiverProtocol, ChannelAdapterProtocol

logger = structlog.get_logger(__name__)


class ToolDispatcher:
    """Forwards tool calls to the channel, the correlation engine and the archiver.

    Every operation refuses to run while the channel is not ready. One-way
    sends (``notify_user``, ``send_file``) bypass the correlation engine.
    """

    def __init__(
        self,
        channel: ChannelAdapterProtocol,
        engine: CorrelationEngine,
        archiver: ArchiverProtocol,
        *,
        max_archive_bytes: int = DEFAULT_MAX_ARCHIVE_BYTES,
    ) -> None:
        self._channel = channel
        self._engine = engine
        self._archiver = archiver
        self._max_archive_bytes = max_archive_bytes

    @property
    def chat_id(self) -> str:
        return self._engine.operator_chat_id

    def _ensure_ready(self) -> None:
        if not self._channel.is_ready:
            raise ChannelNotReadyError()

    async def ask_user(self, question: str) -> str:
        """Ask the operator a question and return the reply."""
        self._ensure_ready()
        return await self._engine.ask(question)

    async def notify_user(self, message: str) -> str:
        self._ensure_ready()
        await self._channel.send_message(self.chat_id, message)
        logger.info("tool.notification_sent", length=len(message))
        return "Notification sent successfully"

    async def send_file(self, file_path: str) -> str:
        self._ensure_ready()
        path = Path(file_path).expanduser()
        if not path.is_file():
            raise FileTransferError(
                f"File not found: {file_path}", details={"path": str(path)}
            )
        await self._channel.send_document(
            self.chat_id,
            path,
            filename=path.name,
            content_type="application/octet-stream",
        )
        logger.info("tool.file_sent", path=str(path))
        return "File sent successfully"

    async def zip_project(self, directory: str | None = None) -> str:
        """Archive ``directory`` (default: working directory) and send it.

        The archive is deleted afterwards whether or not the upload succeeds.
        """
        self._ensure_ready()
        root = Path(directory).expanduser() if directory else Path.cwd()
        create = asyncio.ensure_future(asyncio.to_thread(self._archiver.create, root))
        try:
            artifact = await asyncio.shield(create)
        except asyncio.CancelledError:
            # the worker thread cannot be stopped; remove its output once it finishes
            create.add_done_callback(_discard_artifact)
            raise
        try:
            if artifact.size_bytes > self._max_archive_bytes:
                logger.warning(
                    "tool.archive_too_large",
                    path=str(artifact.path),
                    size_bytes=artifact.size_bytes,
                    limit_bytes=self._max_archive_bytes,
                )
                raise ArchiveTooLargeError(
                    f"File size exceeds {_format_size(self._max_archive_bytes)} limit. "
                    "Please implement file splitting or reduce the project size.",
                    size_bytes=artifact.size_bytes,
                    limit_bytes=self._max_archive_bytes,
                )
            await self._channel.send_document(
                self.chat_id,
                artifact.path,
                filename=artifact.path.name,
                content_type="application/zip",
            )
        finally:
            artifact.path.unlink(missing_ok=True)

        logger.info(
            "tool.archive_sent",
            path=str(artifact.path),
            size_bytes=artifact.size_bytes,
            files=artifact.file_count,
        )
        return "Project zipped and sent successfully"


def _format_size(num_bytes: int) -> str:
    for unit in ("B", "KB", "MB", "GB"):
        if num_bytes < 1024 or unit == "GB":
            break
        num_bytes //= 1024
    return f"{num_bytes}{unit}"


def _discard_artifact(create: asyncio.Future[ArchiveArtifact]) -> None:
    if create.cancelled() or create.exception() is not None:
        return
    artifact = create.result()
    artifact.path.unlink(missing_ok=True)
    logger.info("tool.archive_discarded", path=str(artifact.path))
