"""Chat channel adapters."""

from communicator.infrastructure.communication.telegram_channel import TelegramChannel

__all__ = ["TelegramChannel"]
