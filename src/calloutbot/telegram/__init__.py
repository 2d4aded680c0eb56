"""Telegram-specific clients and adapters."""

from .client import BotClient, TelegramClient, TelegramRetryAfter
from .parsing import parse_incoming_update, poll_incoming
from .types import (
    TelegramCallbackQuery,
    TelegramIncomingMessage,
    TelegramIncomingUpdate,
)

__all__ = [
    "BotClient",
    "TelegramCallbackQuery",
    "TelegramClient",
    "TelegramIncomingMessage",
    "TelegramIncomingUpdate",
    "TelegramRetryAfter",
    "parse_incoming_update",
    "poll_incoming",
]
