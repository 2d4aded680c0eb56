"""Send renders to a chat and suspend until the chat answers."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream

from .conditions import ReplayCondition
from .evaluator import evaluate
from .events import EventBus, user_scope
from .keyboard import empty_inline_keyboard, remove_keyboard
from .logging import get_logger
from .messages import MessageRenderer
from .model import ReplayAccepted, ReplayType
from .render import (
    Render,
    RenderEmpty,
    RenderHtml,
    RenderMarkdown,
    RenderPhoto,
    RenderResponse,
    RenderText,
)
from .session import AbortSignal, SessionStore
from .telegram.client import BotClient
from .telegram.render import (
    MAX_CAPTION_LEN,
    render_html,
    render_markdown,
    trim_text,
)
from .telegram.types import (
    TelegramCallbackQuery,
    TelegramIncomingMessage,
    TelegramIncomingUpdate,
)
from .transform import to_render_response

logger = get_logger(__name__)

__all__ = ["Communicator", "ReplyCancelled", "ReplyWaitConflict"]


class ReplyWaitConflict(RuntimeError):
    """A second reply wait was started for a chat that is already waiting."""


class ReplyCancelled(Exception):
    """The pending reply wait was aborted through the session."""


def _user_id(event: TelegramIncomingUpdate) -> int:
    return event.sender_id if event.sender_id is not None else event.chat_id


class Communicator:
    def __init__(
        self,
        *,
        bot: BotClient,
        bus: EventBus,
        sessions: SessionStore,
        messages: MessageRenderer,
    ) -> None:
        self._bot = bot
        self._bus = bus
        self._sessions = sessions
        self._messages = messages
        self._waiting: set[int] = set()

    def is_waiting(self, chat_id: int) -> bool:
        return chat_id in self._waiting

    async def send(
        self, event: TelegramIncomingUpdate, renders: Render | Sequence[Render]
    ) -> list[dict | None]:
        """Deliver renders in order; a failed item is logged and skipped."""
        items = [renders] if not isinstance(renders, Sequence) else list(renders)
        results: list[dict | None] = []
        for render in items:
            try:
                result = await self._send_one(event.chat_id, render)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "communication.send.failed",
                    chat_id=event.chat_id,
                    key=render.key,
                    error=str(exc),
                    error_type=exc.__class__.__name__,
                )
                result = None
            else:
                if result is None and not isinstance(render, RenderEmpty):
                    logger.warning(
                        "communication.send.failed", chat_id=event.chat_id, key=render.key
                    )
            results.append(result)
        return results

    def _reply_markup(self, render: Render) -> dict[str, Any] | None:
        if render.keyboard is not None:
            return render.keyboard
        if render.remove_keyboard:
            return remove_keyboard()
        return None

    async def _send_one(self, chat_id: int, render: Render) -> dict | None:
        reply_markup = self._reply_markup(render)
        logger.debug(
            "communication.send",
            chat_id=chat_id,
            key=render.key,
            render_type=render.type.value,
        )
        if isinstance(render, RenderEmpty):
            return None
        if isinstance(render, RenderText):
            result = await self._bot.send_message(
                chat_id, trim_text(render.text), reply_markup=reply_markup
            )
        elif isinstance(render, RenderMarkdown):
            text, entities = render_markdown(render.markdown)
            result = await self._bot.send_message(
                chat_id,
                trim_text(text),
                entities=entities or None,
                reply_markup=reply_markup,
            )
        elif isinstance(render, RenderHtml):
            text, entities = render_html(render.html)
            result = await self._bot.send_message(
                chat_id,
                trim_text(text),
                entities=entities or None,
                reply_markup=reply_markup,
            )
        elif isinstance(render, RenderPhoto):
            caption = entities = None
            if render.caption:
                caption, entities = render_markdown(render.caption)
                caption = trim_text(caption, MAX_CAPTION_LEN)
            result = await self._bot.send_photo(
                chat_id,
                render.photo,
                caption=caption,
                caption_entities=entities or None,
                reply_markup=reply_markup,
            )
        else:
            raise TypeError(f"Unsupported render: {render!r}")

        if result is not None and reply_markup and "inline_keyboard" in reply_markup:
            session = self._sessions.get(chat_id)
            self._sessions.set_latest_keyboard(
                session,
                {"message_id": result.get("message_id"), "key": render.key},
            )
        return result

    async def answer_callback_query(
        self, event: TelegramCallbackQuery, text: str | None = None
    ) -> None:
        await self._bot.answer_callback_query(event.callback_query_id, text)

    async def remove_inline_keyboard(self, event: TelegramCallbackQuery) -> None:
        await self._bot.edit_message_reply_markup(
            event.chat_id, event.message_id, reply_markup=empty_inline_keyboard()
        )
        session = self._sessions.get(event.chat_id)
        latest = session.data.latest_keyboard
        if latest is not None and latest.get("message_id") == event.message_id:
            self._sessions.set_latest_keyboard(session, None)

    @asynccontextmanager
    async def _inbox(
        self, event: TelegramIncomingUpdate
    ) -> AsyncIterator[MemoryObjectReceiveStream[TelegramIncomingMessage]]:
        chat_id = event.chat_id
        if chat_id in self._waiting:
            raise ReplyWaitConflict(f"chat {chat_id} is already waiting for a reply")
        self._waiting.add(chat_id)
        try:
            async with self._bus.subscribe(user_scope("message", _user_id(event))) as inbox:
                yield inbox
        finally:
            self._waiting.discard(chat_id)

    async def _next(
        self,
        inbox: MemoryObjectReceiveStream[TelegramIncomingMessage],
        signal: AbortSignal | None,
    ) -> TelegramIncomingMessage:
        if signal is None:
            return await inbox.receive()
        self._check(signal)

        received: list[TelegramIncomingMessage] = []
        async with anyio.create_task_group() as tg:

            async def watch_abort() -> None:
                await signal.wait()
                tg.cancel_scope.cancel()

            tg.start_soon(watch_abort)
            received.append(await inbox.receive())
            tg.cancel_scope.cancel()
        if not received:
            raise ReplyCancelled()
        return received[0]

    def _check(self, signal: AbortSignal | None) -> None:
        if signal is not None and signal.aborted:
            raise ReplyCancelled()

    async def _receive(
        self,
        inbox: MemoryObjectReceiveStream[TelegramIncomingMessage],
        condition: ReplayCondition,
        signal: AbortSignal | None,
    ) -> list[ReplayAccepted]:
        replays: list[ReplayAccepted] = []
        while True:
            message = await self._next(inbox, signal)
            logger.debug(
                "communication.receive",
                chat_id=message.chat_id,
                text=message.text,
                condition_type=condition.type.value,
            )
            replay = evaluate(message, condition)
            if not replay.accepted:
                logger.debug(
                    "communication.rejected",
                    chat_id=message.chat_id,
                    condition_type=condition.type.value,
                )
                hint = self._messages.not_accepted_message(replay, condition)
                if hint is not None:
                    self._check(signal)
                    await self.send(message, hint)
                continue

            if not (condition.multiple and replay.is_done_message and not replay.is_skip_message):
                replays.append(replay)
            if replay.is_done_message:
                return replays

    async def wait_for_message(self, event: TelegramIncomingUpdate) -> TelegramIncomingMessage:
        """Suspend until the next plain message from the same chat."""
        async with self._inbox(event) as inbox:
            return await inbox.receive()

    async def wait_for_reply(
        self,
        event: TelegramIncomingUpdate,
        condition: ReplayCondition,
        *,
        signal: AbortSignal | None = None,
    ) -> list[ReplayAccepted]:
        """Collect replies until ``condition`` reports a done reply.

        Without an explicit ``signal`` the wait follows the chat's pending
        action, if any. Raises ``ReplyCancelled`` once that signal fires.
        """
        if signal is None:
            signal = self._sessions.abort_signal(self._sessions.get(event.chat_id))
        async with self._inbox(event) as inbox:
            return await self._receive(inbox, condition, signal)

    async def send_and_receive(
        self,
        event: TelegramIncomingUpdate,
        render: Render,
        *,
        signal: AbortSignal | None = None,
    ) -> RenderResponse:
        self._check(signal)
        if render.accepted.type is ReplayType.NONE:
            await self.send(event, render)
            return to_render_response(render, [])
        async with self._inbox(event) as inbox:
            await self.send(event, render)
            replays = await self._receive(inbox, render.accepted, signal)
        return to_render_response(render, replays)

    async def send_and_receive_all(
        self,
        event: TelegramIncomingUpdate,
        renders: Sequence[Render],
        *,
        signal: AbortSignal | None = None,
    ) -> list[RenderResponse]:
        """Ask every render in turn; ``signal`` is checked before each one."""
        responses: list[RenderResponse] = []
        for render in renders:
            responses.append(await self.send_and_receive(event, render, signal=signal))
        self._check(signal)
        return responses
