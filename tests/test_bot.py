import anyio
import pytest

from calloutbot.bot import build_context, run_main_loop
from calloutbot.config import BotSettings
from calloutbot.context import BotContext
from calloutbot.session import ChatState
from tests.factories import CHAT_ID, callback, callout, message
from tests.fakes import FakeBot, FakeContent

pytestmark = pytest.mark.anyio


def _poller(updates):
    async def poll(bot):
        for update in updates:
            yield update
            await anyio.wait_all_tasks_blocked()

    return poll


async def test_loop_routes_commands_and_buttons(
    ctx: BotContext, fake_bot: FakeBot, fake_content: FakeContent
) -> None:
    fake_content.callouts["parks"] = callout("parks", title="Our parks")
    await run_main_loop(
        ctx, poller_fn=_poller([message("/list"), callback("1:parks")])
    )

    texts = fake_bot.texts()
    assert "Our parks" in texts[0]
    assert texts[-1].startswith("Our parks")
    session = ctx.sessions.get(CHAT_ID)
    assert session.state is ChatState.CALLOUT_DETAILS
    assert session.data.ctx.data == "1:parks"


async def test_plain_message_without_waiter_is_ignored(
    ctx: BotContext, fake_bot: FakeBot
) -> None:
    await run_main_loop(ctx, poller_fn=_poller([message("hello")]))
    assert fake_bot.sent == []


async def test_failing_command_reports_error(
    ctx: BotContext, fake_bot: FakeBot, fake_content: FakeContent
) -> None:
    async def broken(limit: int = 10):
        raise RuntimeError("boom")

    fake_content.list_callouts = broken
    await run_main_loop(ctx, poller_fn=_poller([message("/list")]))
    assert fake_bot.texts() == ["Something went wrong, please try again."]


async def test_translations_come_from_settings(fake_bot: FakeBot, fake_content: FakeContent) -> None:
    settings = BotSettings(
        bot_token="1:abc",
        api_token="t",
        strings={"bot.info.messages.cancel.unsuccessful": "Nichts zu tun."},
    )
    ctx = build_context(settings, bot=fake_bot, content=fake_content, bot_name="parks")
    await run_main_loop(ctx, poller_fn=_poller([message("/cancel")]))
    assert fake_bot.texts() == ["Nichts zu tun."]
