from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, TypeVar

import anyio
import msgspec

from ..logging import get_logger
from .api_models import CallbackQuery, Message, Update
from .client import BotClient
from .types import (
    TelegramCallbackQuery,
    TelegramIncomingMessage,
    TelegramIncomingUpdate,
)

logger = get_logger(__name__)
T = TypeVar("T")

ALLOWED_UPDATES = ["message", "callback_query"]


def parse_incoming_update(
    update: Update | dict[str, Any],
) -> TelegramIncomingUpdate | None:
    raw_message: dict[str, Any] | None = None
    raw_callback: dict[str, Any] | None = None
    if isinstance(update, dict):
        raw_message = update.get("message") if isinstance(update.get("message"), dict) else None
        raw_callback = (
            update.get("callback_query")
            if isinstance(update.get("callback_query"), dict)
            else None
        )
        try:
            update = msgspec.convert(update, type=Update)
        except msgspec.ValidationError:
            return None

    msg = _coerce_payload(update.message, Message)
    if msg is not None:
        return _parse_incoming_message(msg, raw=raw_message)
    callback_query = _coerce_payload(update.callback_query, CallbackQuery)
    if callback_query is not None:
        return _parse_callback_query(callback_query, raw=raw_callback)
    return None


def _parse_incoming_message(
    msg: Message,
    *,
    raw: dict[str, Any] | None = None,
) -> TelegramIncomingMessage | None:
    chat = msg.chat
    if chat is None:
        return None
    text = msg.text if msg.text is not None else msg.caption
    sender_id = msg.from_.id if msg.from_ is not None else None
    return TelegramIncomingMessage(
        transport="telegram",
        chat_id=chat.id,
        message_id=msg.message_id,
        text=text,
        sender_id=sender_id,
        message=msg,
        raw=raw if raw is not None else msgspec.to_builtins(msg),
    )


def _parse_callback_query(
    query: CallbackQuery,
    *,
    raw: dict[str, Any] | None = None,
) -> TelegramCallbackQuery | None:
    msg = query.message
    if msg is None or msg.chat is None:
        return None
    sender_id = query.from_.id if query.from_ is not None else None
    return TelegramCallbackQuery(
        transport="telegram",
        chat_id=msg.chat.id,
        message_id=msg.message_id,
        callback_query_id=query.id,
        data=query.data,
        sender_id=sender_id,
        raw=raw if raw is not None else msgspec.to_builtins(query),
    )


def _coerce_payload(payload: Any | None, kind: type[T]) -> T | None:
    if payload is None:
        return None
    if isinstance(payload, kind):
        return payload
    if isinstance(payload, dict):
        try:
            return msgspec.convert(payload, type=kind)
        except msgspec.ValidationError:
            return None
    return None


async def poll_incoming(
    bot: BotClient,
    *,
    offset: int | None = None,
    retry_delay_s: float = 2.0,
) -> AsyncIterator[TelegramIncomingUpdate]:
    while True:
        updates = await bot.get_updates(
            offset=offset,
            timeout_s=50,
            allowed_updates=ALLOWED_UPDATES,
        )
        if updates is None:
            logger.info("loop.get_updates.failed")
            await anyio.sleep(retry_delay_s)
            continue
        logger.debug("loop.updates", count=len(updates))
        for upd in updates:
            update_id = upd.get("update_id") if isinstance(upd, dict) else None
            if isinstance(update_id, int):
                offset = update_id + 1
            msg = parse_incoming_update(upd)
            if msg is not None:
                yield msg
