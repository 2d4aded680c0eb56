"""Inline button handlers for browsing and answering callouts.

Button payloads are ``<prefix>:<slug>[:<choice>]``:

- ``1:<slug>`` shows a callout,
- ``2:<slug>:yes|no`` answers whether to start a response,
- ``3:<slug>:continue|cancel`` answers the form intro.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from functools import wraps

from .communication import ReplyCancelled
from .content import ContentApiError
from .context import BotContext
from .keyboard import (
    BUTTON_CALLBACK_CALLOUT_INTRO,
    BUTTON_CALLBACK_CALLOUT_PARTICIPATE,
    BUTTON_CALLBACK_SHOW_CALLOUT,
)
from .logging import get_logger
from .session import ChatState
from .telegram.types import TelegramCallbackQuery
from .transform import parse_callout_form_responses

logger = get_logger(__name__)

ButtonHandler = Callable[[BotContext, TelegramCallbackQuery], Awaitable[None]]


def _payload(event: TelegramCallbackQuery) -> list[str]:
    return (event.data or "").split(":")[1:]


def _guest_name(event: TelegramCallbackQuery) -> str | None:
    sender = (event.raw or {}).get("from")
    if not isinstance(sender, dict):
        return None
    username = sender.get("username")
    if isinstance(username, str) and username:
        return username
    first_name = sender.get("first_name")
    return first_name if isinstance(first_name, str) and first_name else None


async def _acknowledge(ctx: BotContext, event: TelegramCallbackQuery) -> None:
    await ctx.communicator.answer_callback_query(event)
    await ctx.communicator.remove_inline_keyboard(event)


async def show_callout(ctx: BotContext, event: TelegramCallbackQuery) -> None:
    await ctx.communicator.answer_callback_query(event)
    payload = _payload(event)
    if not payload or not payload[0]:
        logger.warning("handlers.show.missing_slug", data=event.data)
        await ctx.communicator.send(event, ctx.messages.callout_not_found())
        return
    try:
        callout = await ctx.content.get_callout(payload[0])
    except ContentApiError as exc:
        logger.warning("handlers.show.not_found", slug=payload[0], error=str(exc))
        await ctx.communicator.send(event, ctx.messages.callout_not_found())
        return
    await ctx.communicator.send(event, ctx.callouts.details(callout))
    session = ctx.sessions.get(event.chat_id)
    ctx.sessions.set_state(session, ChatState.CALLOUT_DETAILS)


async def callout_intro(ctx: BotContext, event: TelegramCallbackQuery) -> None:
    await _acknowledge(ctx, event)
    payload = _payload(event)
    session = ctx.sessions.get(event.chat_id)
    if len(payload) < 2 or payload[1] != "yes":
        ctx.sessions.set_state(session, ChatState.START)
        await ctx.communicator.send(event, ctx.messages.stop())
        return
    try:
        callout = await ctx.content.get_callout(payload[0], with_form=True)
    except ContentApiError as exc:
        logger.warning("handlers.intro.not_found", slug=payload[0], error=str(exc))
        await ctx.communicator.send(event, ctx.messages.callout_not_found())
        return
    await ctx.communicator.send(event, ctx.callouts.intro(callout))


async def callout_participate(ctx: BotContext, event: TelegramCallbackQuery) -> None:
    await _acknowledge(ctx, event)
    payload = _payload(event)
    session = ctx.sessions.get(event.chat_id)
    if len(payload) < 2 or payload[1] != "continue":
        ctx.sessions.set_state(session, ChatState.START)
        await ctx.communicator.send(event, ctx.messages.stop())
        return

    slug = payload[0]
    try:
        callout = await ctx.content.get_callout(slug, with_form=True)
    except ContentApiError as exc:
        logger.warning("handlers.participate.not_found", slug=slug, error=str(exc))
        await ctx.communicator.send(event, ctx.messages.callout_not_found())
        return

    signal = ctx.sessions.set_state(session, ChatState.CALLOUT_ANSWER, cancellable=True)
    try:
        responses = await ctx.communicator.send_and_receive_all(
            event, ctx.callouts.form(callout), signal=signal
        )
    except ReplyCancelled:
        logger.info("handlers.participate.cancelled", chat_id=event.chat_id, slug=slug)
        return

    answers = parse_callout_form_responses(responses)
    logger.debug("handlers.participate.answers", slug=slug, answers=answers)
    try:
        await ctx.content.create_callout_response(
            slug, answers, guest_name=_guest_name(event)
        )
    except ContentApiError as exc:
        logger.error("handlers.participate.response_failed", slug=slug, error=str(exc))
        ctx.sessions.set_state(session, ChatState.START)
        await ctx.communicator.send(event, ctx.messages.response_failed())
        return
    ctx.sessions.set_state(session, ChatState.CALLOUT_ANSWERED)
    await ctx.communicator.send(event, ctx.callouts.thank_you(callout))


BUTTON_HANDLERS: tuple[tuple[str, ButtonHandler], ...] = (
    (BUTTON_CALLBACK_SHOW_CALLOUT, show_callout),
    (BUTTON_CALLBACK_CALLOUT_INTRO, callout_intro),
    (BUTTON_CALLBACK_CALLOUT_PARTICIPATE, callout_participate),
)


def guarded(
    ctx: BotContext, handler: ButtonHandler
) -> Callable[[TelegramCallbackQuery], Awaitable[None]]:
    """Bind ``handler`` to ``ctx``; failures are logged and reported to the chat."""

    @wraps(handler)
    async def listener(event: TelegramCallbackQuery) -> None:
        try:
            await handler(ctx, event)
        except Exception:  # noqa: BLE001
            logger.exception(
                "handlers.failed", handler=handler.__name__, chat_id=event.chat_id
            )
            await ctx.communicator.send(event, ctx.messages.error())

    return listener


def register_handlers(ctx: BotContext) -> None:
    for prefix, handler in BUTTON_HANDLERS:
        ctx.bus.on(f"callback_query:data:{prefix}", guarded(ctx, handler))
