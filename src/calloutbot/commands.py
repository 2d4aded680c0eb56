"""Slash commands.

Commands are registered in the static ``COMMANDS`` list; messages that
start with ``/`` go to :func:`dispatch_command` and never reach a pending
reply wait.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from .content import ContentApiError
from .context import BotContext
from .events import EventBus
from .i18n import Translator
from .logging import get_logger
from .session import ChatState, SessionState
from .telegram.client import BotClient
from .telegram.types import TelegramIncomingMessage

logger = get_logger(__name__)

_COMMAND_NORMALIZE_RE = re.compile(r"[^a-z0-9_]")

CommandAction = Callable[[BotContext, TelegramIncomingMessage, str], Awaitable[None]]

IDLE_STATES = frozenset({ChatState.INITIAL, ChatState.START})
STARTED_STATES = frozenset(ChatState) - {ChatState.INITIAL}


@dataclass(frozen=True, slots=True)
class Command:
    name: str
    action: CommandAction
    # Empty means usable in every state.
    states: frozenset[ChatState] = frozenset()

    @property
    def description_key(self) -> str:
        return f"bot.commands.{self.name}.description"

    def usable_in(self, state: ChatState) -> bool:
        return not self.states or state in self.states


def normalize_command(name: str) -> str:
    value = name.strip().lstrip("/").lower()
    if not value:
        return ""
    value = _COMMAND_NORMALIZE_RE.sub("_", value)
    value = re.sub(r"_+", "_", value).strip("_")
    return value


def parse_command(text: str | None) -> tuple[str, str] | None:
    """Split ``/name@bot args`` into ``("name", "args")``."""
    if not text:
        return None
    stripped = text.lstrip()
    if not stripped.startswith("/"):
        return None
    head, _, args = stripped.partition(" ")
    name = normalize_command(head.split("@", 1)[0])
    if not name:
        return None
    return name, args.strip()


def describe_commands(
    translator: Translator, commands: Iterable[Command] | None = None
) -> list[tuple[str, str]]:
    return [
        (command.name, translator.t(command.description_key))
        for command in (COMMANDS if commands is None else commands)
    ]


async def start_command(ctx: BotContext, message: TelegramIncomingMessage, _args: str) -> None:
    session = ctx.sessions.get(message.chat_id)
    ctx.sessions.set_state(session, ChatState.START)
    await ctx.communicator.send(
        message,
        [ctx.messages.welcome(), ctx.messages.intro(describe_commands(ctx.translator))],
    )


async def help_command(ctx: BotContext, message: TelegramIncomingMessage, _args: str) -> None:
    await ctx.communicator.send(
        message, ctx.messages.intro(describe_commands(ctx.translator))
    )


async def list_command(ctx: BotContext, message: TelegramIncomingMessage, _args: str) -> None:
    try:
        callouts = await ctx.content.list_callouts(ctx.callout_list_limit)
    except ContentApiError as exc:
        logger.error("commands.list.failed", chat_id=message.chat_id, error=str(exc))
        await ctx.communicator.send(message, ctx.messages.error())
        return
    await ctx.communicator.send(message, ctx.callouts.list_items(callouts))
    session = ctx.sessions.get(message.chat_id)
    ctx.sessions.set_state(session, ChatState.CALLOUT_LIST)


async def cancel_command(ctx: BotContext, message: TelegramIncomingMessage, _args: str) -> None:
    session = ctx.sessions.get(message.chat_id)
    controller = session.data.abort_controller
    if controller is not None and controller.signal.aborted:
        ctx.sessions.set_state(session, ChatState.START)
        logger.info("commands.cancel", chat_id=message.chat_id, already_cancelled=True)
        await ctx.communicator.send(message, ctx.messages.cancel_cancelled_message())
        return
    was_busy = session.state not in IDLE_STATES
    cancelled = ctx.sessions.cancel(session) or was_busy
    ctx.sessions.set_state(session, ChatState.START)
    logger.info("commands.cancel", chat_id=message.chat_id, cancelled=cancelled)
    await ctx.communicator.send(message, ctx.messages.cancel_message(cancelled))


async def reset_command(ctx: BotContext, message: TelegramIncomingMessage, _args: str) -> None:
    session = ctx.sessions.get(message.chat_id)
    controller = session.data.abort_controller
    if controller is None:
        notice = ctx.messages.reset_unsuccessful_message()
    elif controller.signal.aborted:
        notice = ctx.messages.reset_cancelled_message()
    else:
        notice = ctx.messages.reset_successful_message()
    await ctx.communicator.send(message, notice)
    ctx.sessions.reset(session)
    await ctx.communicator.send(
        message, ctx.messages.intro(describe_commands(ctx.translator))
    )


COMMANDS: tuple[Command, ...] = (
    Command("start", start_command, IDLE_STATES),
    Command("help", help_command, IDLE_STATES),
    Command("list", list_command, IDLE_STATES),
    Command("cancel", cancel_command),
    Command("reset", reset_command, STARTED_STATES),
)

_BY_NAME = {command.name: command for command in COMMANDS}


def find_command(name: str) -> Command | None:
    return _BY_NAME.get(normalize_command(name))


async def dispatch_command(ctx: BotContext, message: TelegramIncomingMessage) -> bool:
    """Run the command in ``message``; ``False`` when it names no command."""
    parsed = parse_command(message.text)
    if parsed is None:
        return False
    name, args = parsed
    command = find_command(name)
    if command is None:
        logger.debug("commands.unknown", chat_id=message.chat_id, command=name)
        return False
    session = ctx.sessions.get(message.chat_id)
    if not command.usable_in(session.state):
        await ctx.communicator.send(
            message, ctx.messages.command_not_usable(command.name, session.state)
        )
        return True
    logger.info("commands.run", chat_id=message.chat_id, command=command.name)
    await command.action(ctx, message, args)
    return True


def commands_for_state(state: ChatState) -> list[Command]:
    return [command for command in COMMANDS if command.usable_in(state)]


async def publish_commands(
    bot: BotClient,
    translator: Translator,
    commands: Iterable[Command] | None = None,
    *,
    chat_id: int | None = None,
) -> bool:
    """Set the command menu, globally or for one chat."""
    payload = [
        {"command": name, "description": description}
        for name, description in describe_commands(translator, commands)
    ]
    scope = {"type": "chat", "chat_id": chat_id} if chat_id is not None else None
    ok = await bot.set_my_commands(payload, scope=scope)
    if not ok:
        logger.warning("commands.publish.failed", count=len(payload), chat_id=chat_id)
    return ok


class CommandMenu:
    """Keeps each chat's command menu in step with its session state.

    Registered as a session listener; publishing runs on the bus task group
    and is skipped while the bus is unbound.
    """

    def __init__(self, bot: BotClient, translator: Translator, bus: EventBus) -> None:
        self._bot = bot
        self._translator = translator
        self._bus = bus
        self._published: dict[int, ChatState] = {}
        bus.on("session:state", self._publish)

    def on_session_changed(self, session: SessionState, _change: str) -> None:
        if self._published.get(session.chat_id) is session.state or not self._bus.bound:
            return
        self._published[session.chat_id] = session.state
        self._bus.emit("session:state", (session.chat_id, session.state))

    async def _publish(self, detail: tuple[int, ChatState]) -> None:
        chat_id, state = detail
        await publish_commands(
            self._bot, self._translator, commands_for_state(state), chat_id=chat_id
        )
