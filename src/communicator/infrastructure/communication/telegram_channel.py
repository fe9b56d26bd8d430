"""Telegram Bot API channel (outbound sends plus ``getUpdates`` long-polling).

Usage::

    channel = TelegramChannel(bot_token="123:ABC")
    channel.set_message_handler(engine.handle_inbound_message)
    await channel.start()   # verifies the token, polls in background
    ...
    await channel.stop()

Updates are handled strictly one after another inside the polling task, so
the message handler never runs concurrently with itself.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from pathlib import Path
from typing import Any

import aiohttp
import structlog

from communicator.core.domain.errors import ChannelError, ChannelStartupError
from communicator.core.domain.question import InboundMessage
from communicator.core.interfaces.channel import InboundHandler

logger = structlog.get_logger(__name__)

_API_BASE = "https://api.telegram.org"
_POLL_ERROR_BACKOFF = 2.0


class TelegramChannel:
    """Channel adapter for a Telegram bot chat."""

    def __init__(
        self,
        *,
        bot_token: str,
        on_message: InboundHandler | None = None,
        poll_timeout: int = 30,
        api_base: str = _API_BASE,
    ) -> None:
        self._base_url = f"{api_base}/bot{bot_token}"
        self._on_message = on_message
        self._poll_timeout = poll_timeout
        self._offset: int = 0
        self._task: asyncio.Task[None] | None = None
        self._session: aiohttp.ClientSession | None = None
        self._ready = False
        self.bot_username: str | None = None

    def set_message_handler(self, handler: InboundHandler) -> None:
        self._on_message = handler

    @property
    def is_ready(self) -> bool:
        return self._ready

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Verify the bot token and start the background polling task."""
        if self._task is not None:
            return
        await self.verify()
        # getUpdates is refused while a webhook is registered
        await self._delete_webhook()
        self._task = asyncio.create_task(self._poll_loop(), name="telegram-channel-poller")
        self._ready = True
        logger.info("telegram_channel.started", bot_username=self.bot_username)

    async def verify(self) -> str | None:
        """Check the token with ``getMe`` and return the bot username.

        Raises:
            ChannelStartupError: If the token is rejected or the API is unreachable.
        """
        try:
            me = await self._call_api("getMe")
        except ChannelError as exc:
            await self._close_session()
            raise ChannelStartupError(
                f"Error initializing bot: {exc.message}", details=exc.details
            ) from exc
        self.bot_username = (me or {}).get("username")
        return self.bot_username

    async def stop(self) -> None:
        """Cancel the polling task and close the HTTP session."""
        self._ready = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self._close_session()
        logger.info("telegram_channel.stopped")

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def send_message(
        self,
        chat_id: str,
        text: str,
        *,
        force_reply: bool = False,
    ) -> int | None:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if force_reply:
            payload["reply_markup"] = {"force_reply": True, "selective": True}
        result = await self._call_api("sendMessage", json_body=payload)
        logger.debug(
            "telegram_channel.message_sent",
            chat_id=chat_id,
            message_id=result.get("message_id"),
        )
        return result.get("message_id")

    async def send_document(
        self,
        chat_id: str,
        path: Path,
        *,
        filename: str | None = None,
        content_type: str = "application/octet-stream",
    ) -> None:
        with open(path, "rb") as fh:
            form = aiohttp.FormData()
            form.add_field("chat_id", str(chat_id))
            form.add_field(
                "document",
                fh,
                filename=filename or Path(path).name,
                content_type=content_type,
            )
            await self._call_api("sendDocument", data=form, timeout=None)
        logger.info("telegram_channel.document_sent", chat_id=chat_id, path=str(path))

    # ------------------------------------------------------------------
    # Bot API plumbing
    # ------------------------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def _close_session(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _call_api(
        self,
        method: str,
        *,
        json_body: dict[str, Any] | None = None,
        data: aiohttp.FormData | None = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = 30.0,
    ) -> Any:
        """POST a Bot API method and return its ``result`` field.

        Raises:
            ChannelError: On transport errors, HTTP errors or ``ok: false``.
        """
        session = await self._get_session()
        client_timeout = aiohttp.ClientTimeout(total=timeout)
        try:
            async with session.post(
                f"{self._base_url}/{method}",
                json=json_body,
                data=data,
                params=params,
                timeout=client_timeout,
            ) as resp:
                body = await resp.text()
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ChannelError(
                f"Telegram {method} failed: {str(exc) or type(exc).__name__}",
                details={"method": method},
            ) from exc

        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if status >= 400 or not payload.get("ok", False):
            description = payload.get("description") or body[:200]
            raise ChannelError(
                f"Telegram {method} failed ({status}): {description}",
                details={"method": method, "status": status},
            )
        return payload.get("result")

    async def _delete_webhook(self) -> None:
        try:
            await self._call_api("deleteWebhook")
            logger.info("telegram_channel.webhook_deleted")
        except ChannelError as exc:
            logger.warning("telegram_channel.delete_webhook_failed", error=exc.message)

    # ------------------------------------------------------------------
    # Inbound polling loop
    # ------------------------------------------------------------------

    async def _poll_loop(self) -> None:
        """Continuously poll ``getUpdates`` until cancelled."""
        while True:
            try:
                updates = await self._get_updates()
                for update in updates:
                    await self._handle_update(update)
            except asyncio.CancelledError:
                raise
            except ChannelError as exc:
                if exc.details and exc.details.get("status") == 409:
                    # another process is polling the same bot
                    logger.debug("telegram_channel.poll_conflict")
                else:
                    logger.error("telegram_channel.poll_error", error=exc.message)
                await asyncio.sleep(_POLL_ERROR_BACKOFF)
            except Exception as exc:
                logger.error("telegram_channel.poll_error", error=str(exc))
                await asyncio.sleep(_POLL_ERROR_BACKOFF)

    async def _get_updates(self) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "timeout": self._poll_timeout,
            "allowed_updates": json.dumps(["message"]),
        }
        if self._offset:
            params["offset"] = self._offset
        result = await self._call_api(
            "getUpdates", params=params, timeout=self._poll_timeout + 10
        )
        return result or []

    async def _handle_update(self, update: dict[str, Any]) -> None:
        """Process a single Telegram Update object."""
        update_id = update.get("update_id", 0)
        self._offset = max(self._offset, update_id + 1)

        message = _to_inbound_message(update)
        if message is None:
            return

        logger.debug(
            "telegram_channel.message_received",
            chat_id=message.chat_id,
            text=(message.text or "")[:50],
            is_reply=message.replied_to_text is not None,
        )

        if self._on_message is None:
            return
        try:
            result = self._on_message(message)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("telegram_channel.handler_error", update_id=update_id)


def _to_inbound_message(update: dict[str, Any]) -> InboundMessage | None:
    message_obj = update.get("message")
    if not message_obj:
        return None

    chat_id = message_obj.get("chat", {}).get("id")
    if chat_id is None:
        return None

    sender = message_obj.get("from") or {}
    reply_to = message_obj.get("reply_to_message") or {}
    return InboundMessage(
        chat_id=str(chat_id),
        text=message_obj.get("text"),
        replied_to_text=reply_to.get("text"),
        message_id=message_obj.get("message_id"),
        sender_id=str(sender["id"]) if "id" in sender else None,
    )
