from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeAlias

from .api_models import Message


@dataclass(frozen=True, slots=True)
class TelegramIncomingMessage:
    transport: str
    chat_id: int
    message_id: int
    text: str | None
    sender_id: int | None
    message: Message
    raw: dict[str, Any] | None = None

    @property
    def is_command(self) -> bool:
        return bool(self.text) and self.text.lstrip().startswith("/")


@dataclass(frozen=True, slots=True)
class TelegramCallbackQuery:
    transport: str
    chat_id: int
    message_id: int
    callback_query_id: str
    data: str | None
    sender_id: int | None
    raw: dict[str, Any] | None = None


TelegramIncomingUpdate: TypeAlias = TelegramIncomingMessage | TelegramCallbackQuery
