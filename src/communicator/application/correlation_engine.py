"""Request/response correlation between agent questions and operator replies.

The chat channel only offers "send text" and "receive text, optionally as a
reply to an earlier message". ``CorrelationEngine`` turns that into blocking
question/answer exchanges:

* every question gets a short correlation id, embedded as a ``#<id>`` marker
  line at the top of the outbound message;
* an inbound reply that quotes a question (the client's reply gesture) is
  matched through the marker in the quoted text;
* an inbound message without a usable quote falls back to the most recently
  asked question that is still open.

The fallback is only exact while a single question is outstanding. With
several open questions an unthreaded reply resolves the newest one and the
older ones keep waiting. ``strict_fallback=True`` drops such ambiguous
replies instead.

All state lives on one engine instance and is only touched from the event
loop: ``handle_inbound_message`` never suspends, so no locking is needed.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from communicator.core.domain.errors import CommunicatorError, QuestionTimeoutError
from communicator.core.domain.question import (
    InboundMessage,
    PendingQuestion,
    extract_question_id,
    format_question,
    generate_question_id,
)
from communicator.core.interfaces.channel import ChannelAdapterProtocol

logger = structlog.get_logger(__name__)

_DEFAULT_TIMEOUT: Any = object()


class CorrelationEngine:
    """Owns the pending questions and matches operator replies to them."""

    def __init__(
        self,
        channel: ChannelAdapterProtocol,
        operator_chat_id: str,
        *,
        ask_timeout: float | None = None,
        strict_fallback: bool = False,
    ) -> None:
        self._channel = channel
        self._operator_chat_id = str(operator_chat_id)
        self._ask_timeout = ask_timeout
        self._strict_fallback = strict_fallback
        self._pending: dict[str, PendingQuestion] = {}
        self._last_question_id: str | None = None
        self._closed = False

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    @property
    def operator_chat_id(self) -> str:
        return self._operator_chat_id

    @property
    def pending_ids(self) -> list[str]:
        """Ids of open questions, oldest first."""
        return list(self._pending)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def last_question_id(self) -> str | None:
        return self._last_question_id

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def ask(self, question: str, *, timeout: float | None = _DEFAULT_TIMEOUT) -> str:
        """Send ``question`` to the operator and wait for the answer.

        Args:
            question: Question body shown to the operator.
            timeout: Seconds to wait for an answer. Defaults to the engine's
                ``ask_timeout``; ``None`` waits indefinitely.

        Returns:
            The operator's reply text.

        Raises:
            QuestionTimeoutError: If no answer arrived before the deadline.
            ChannelError: If the question could not be sent.
        """
        if self._closed:
            raise CommunicatorError(
                message="Correlation engine is closed", code="engine_closed"
            )
        if timeout is _DEFAULT_TIMEOUT:
            timeout = self._ask_timeout

        question_id = generate_question_id(self._pending)
        self._last_question_id = question_id
        text = format_question(question_id, question)

        entry = PendingQuestion(
            id=question_id,
            question=question,
            future=asyncio.get_running_loop().create_future(),
        )
        self._pending[question_id] = entry
        logger.info(
            "correlation.question_registered",
            question_id=question_id,
            pending=len(self._pending),
        )

        try:
            await self._channel.send_message(
                self._operator_chat_id, text, force_reply=True
            )
            logger.info("correlation.question_sent", question_id=question_id)
            try:
                return await asyncio.wait_for(entry.future, timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "correlation.question_timed_out",
                    question_id=question_id,
                    timeout_seconds=timeout,
                )
                raise QuestionTimeoutError(
                    f"No answer to question #{question_id} within {timeout:g} seconds",
                    question_id=question_id,
                ) from None
        finally:
            self._discard(entry)

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def handle_inbound_message(self, message: InboundMessage) -> str | None:
        """Resolve the open question ``message`` answers, if any.

        Returns:
            The id of the resolved question, or ``None`` when the message was
            dropped (foreign chat, no text, no matching open question).
        """
        if message.chat_id != self._operator_chat_id:
            logger.debug(
                "correlation.message_rejected",
                reason="unauthorized_chat",
                chat_id=message.chat_id,
            )
            return None
        if not message.text:
            logger.debug("correlation.message_rejected", reason="no_text")
            return None

        question_id = extract_question_id(message.replied_to_text)
        source = "reply"
        if question_id is None:
            source = "fallback"
            if self._strict_fallback and len(self._pending) > 1:
                logger.warning(
                    "correlation.ambiguous_reply",
                    pending_ids=self.pending_ids,
                )
                return None
            question_id = self._last_question_id

        entry = self._pending.pop(question_id, None) if question_id else None
        if entry is None:
            logger.debug(
                "correlation.no_matching_question",
                question_id=question_id,
                pending_ids=self.pending_ids,
            )
            return None

        if self._last_question_id == question_id:
            self._last_question_id = None

        if entry.future.done():
            # Caller already gave up; its cleanup has not run yet.
            logger.debug("correlation.question_already_settled", question_id=question_id)
            return None

        entry.future.set_result(message.text)
        logger.info(
            "correlation.question_resolved",
            question_id=question_id,
            source=source,
            age_seconds=round(entry.age_seconds, 1),
        )
        return question_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Cancel every open question and refuse new ones."""
        if self._closed:
            return
        self._closed = True
        cancelled = 0
        for entry in self._pending.values():
            if not entry.future.done():
                entry.future.cancel()
                cancelled += 1
        self._pending.clear()
        self._last_question_id = None
        logger.info("correlation.engine_closed", cancelled=cancelled)

    def _discard(self, entry: PendingQuestion) -> None:
        if self._pending.get(entry.id) is not entry:
            return
        del self._pending[entry.id]
        if self._last_question_id == entry.id:
            self._last_question_id = None
