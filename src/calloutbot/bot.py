"""Process wiring and the update loop."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import TYPE_CHECKING

import anyio

from .callouts.render import CalloutRenderer
from .commands import CommandMenu, commands_for_state, dispatch_command, publish_commands
from .communication import Communicator
from .conditions import ConditionFactory
from .config import BotSettings
from .content import ContentClient, ContentWatcher
from .context import BotContext, CalloutSource
from .events import EventBus, describe_update
from .handlers import register_handlers
from .i18n import Translator
from .logging import get_logger
from .messages import MessageRenderer
from .session import ChatState, SessionState, SessionStore
from .telegram.client import BotClient, TelegramClient
from .telegram.parsing import poll_incoming
from .telegram.types import TelegramIncomingMessage, TelegramIncomingUpdate
from .webhook import InternalWebhook

if TYPE_CHECKING:
    from anyio.abc import TaskGroup

logger = get_logger(__name__)

Poller = Callable[[BotClient], AsyncIterator[TelegramIncomingUpdate]]


def log_session_change(session: SessionState, change: str) -> None:
    logger.debug(
        "session.changed",
        chat_id=session.chat_id,
        change=change,
        state=session.state.value,
    )


def build_context(
    settings: BotSettings,
    *,
    bot: BotClient,
    content: CalloutSource,
    bot_name: str = "calloutbot",
) -> BotContext:
    translator = Translator(settings.strings)
    bus = EventBus()
    sessions = SessionStore()
    sessions.add_listener(log_session_change)
    sessions.add_listener(CommandMenu(bot, translator, bus).on_session_changed)
    messages = MessageRenderer(translator, bot_name=bot_name)
    conditions = ConditionFactory(translator)
    communicator = Communicator(bot=bot, bus=bus, sessions=sessions, messages=messages)
    ctx = BotContext(
        bot=bot,
        bus=bus,
        sessions=sessions,
        communicator=communicator,
        translator=translator,
        messages=messages,
        conditions=conditions,
        callouts=CalloutRenderer(translator, conditions, site_url=settings.site_url),
        content=content,
        callout_list_limit=settings.callout_list_limit,
    )
    register_handlers(ctx)
    return ctx


async def run_command(ctx: BotContext, message: TelegramIncomingMessage) -> None:
    try:
        handled = await dispatch_command(ctx, message)
    except Exception:  # noqa: BLE001
        logger.exception("bot.command_failed", chat_id=message.chat_id, text=message.text)
        await ctx.communicator.send(message, ctx.messages.error())
        return
    if not handled:
        logger.debug("bot.command_ignored", chat_id=message.chat_id, text=message.text)


def route_update(
    ctx: BotContext, update: TelegramIncomingUpdate, task_group: TaskGroup
) -> None:
    """Commands run in their own task; everything else is fanned out on the bus."""
    session = ctx.sessions.get(update.chat_id)
    ctx.sessions.set_context(session, update)
    if isinstance(update, TelegramIncomingMessage) and update.is_command:
        task_group.start_soon(run_command, ctx, update)
        return
    scopes = ctx.bus.emit_detailed(describe_update(update), update)
    logger.debug("bot.update", chat_id=update.chat_id, scopes=scopes)


async def run_main_loop(ctx: BotContext, *, poller_fn: Poller = poll_incoming) -> None:
    logger.info("bot.loop.starting")
    try:
        async with anyio.create_task_group() as tg:
            ctx.bus.bind(tg)
            async for update in poller_fn(ctx.bot):
                route_update(ctx, update, tg)
    finally:
        ctx.bus.bind(None)


async def run_bot(settings: BotSettings) -> None:
    bot = TelegramClient(settings.bot_token)
    content = ContentClient(
        api_url=settings.api_url,
        api_path=settings.api_path,
        token=settings.api_token,
    )
    try:
        me = await bot.get_me()
        bot_name = (me or {}).get("username") or "calloutbot"
        ctx = build_context(settings, bot=bot, content=content, bot_name=bot_name)
        await publish_commands(bot, ctx.translator, commands_for_state(ChatState.INITIAL))
        watcher = ContentWatcher(
            content,
            ctx.bus,
            settings.watched_content,
            interval_s=settings.content_poll_interval_s,
        )
        async with anyio.create_task_group() as tg:
            tg.start_soon(watcher.run)
            if settings.webhook_port is not None:
                if not settings.service_secret:
                    logger.warning("bot.webhook.disabled", reason="missing service_secret")
                else:
                    webhook = InternalWebhook(
                        secret=settings.service_secret, bus=ctx.bus, watcher=watcher
                    )
                    tg.start_soon(webhook.serve, settings.webhook_host, settings.webhook_port)
            await run_main_loop(ctx)
            tg.cancel_scope.cancel()
    finally:
        await content.close()
        await bot.close()
