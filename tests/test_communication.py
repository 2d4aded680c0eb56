import anyio
import pytest

from calloutbot.communication import ReplyCancelled, ReplyWaitConflict
from calloutbot.conditions import (
    replay_condition_selection,
    replay_condition_text,
)
from calloutbot.context import BotContext
from calloutbot.events import describe_update
from calloutbot.keyboard import inline_yes_no
from calloutbot.model import ParsedResponseType
from calloutbot.render import RenderEmpty, RenderMarkdown, RenderResponse, RenderText
from calloutbot.session import ChatState
from tests.factories import CHAT_ID, callback, message
from tests.fakes import FakeBot

pytestmark = pytest.mark.anyio


def _reply(ctx: BotContext, text: str) -> None:
    update = message(text)
    ctx.bus.emit_detailed(describe_update(update), update)


async def _ask(ctx: BotContext, render, replies: list[str]) -> RenderResponse:
    results: list[RenderResponse] = []

    async def run() -> None:
        results.append(await ctx.communicator.send_and_receive(message("/start"), render))

    async with anyio.create_task_group() as tg:
        tg.start_soon(run)
        await anyio.wait_all_tasks_blocked()
        for text in replies:
            _reply(ctx, text)
            await anyio.wait_all_tasks_blocked()
    return results[0]


async def test_text_whitelist_rejects_then_accepts(ctx: BotContext, fake_bot: FakeBot) -> None:
    render = RenderText(
        key="confirm",
        text="Answer?",
        accepted=replay_condition_text(texts=["yes", "no"]),
        parse_type=ParsedResponseType.TEXT,
    )
    response = await _ask(ctx, render, ["maybe", "Yes"])

    assert response.responses.data == "Yes"
    assert fake_bot.texts() == [
        "Answer?",
        "Please answer with one of the following: yes, no.",
    ]
    assert not ctx.communicator.is_waiting(CHAT_ID)


async def test_selection_by_number(ctx: BotContext) -> None:
    condition = replay_condition_selection({"open": "Open this callout", "cancel": "Stop"})
    render = RenderText(
        key="choice", text="Pick", accepted=condition, parse_type=ParsedResponseType.SELECTION
    )
    response = await _ask(ctx, render, ["2"])
    assert response.responses.data == "cancel"


async def test_multiple_replies_until_done(ctx: BotContext) -> None:
    render = RenderText(
        key="ideas",
        text="Ideas?",
        accepted=replay_condition_text(multiple=True, done_texts=["done"]),
        parse_type=ParsedResponseType.TEXT,
    )
    response = await _ask(ctx, render, ["more trees", "benches", "Done"])
    assert response.responses.multiple is True
    assert response.responses.data == ["more trees", "benches"]


async def test_render_without_reply_does_not_wait(ctx: BotContext, fake_bot: FakeBot) -> None:
    render = RenderText(key="info", text="Just so you know")
    response = await ctx.communicator.send_and_receive(message("/start"), render)
    assert response.responses.data is None
    assert fake_bot.texts() == ["Just so you know"]


async def test_cancel_aborts_pending_wait(ctx: BotContext) -> None:
    outcome: list[str] = []
    session = ctx.sessions.get(CHAT_ID)
    ctx.sessions.set_state(session, ChatState.CALLOUT_ANSWER, cancellable=True)

    async def run() -> None:
        with pytest.raises(ReplyCancelled):
            await ctx.communicator.wait_for_reply(message("/start"), replay_condition_text())
        outcome.append("cancelled")

    async with anyio.create_task_group() as tg:
        tg.start_soon(run)
        await anyio.wait_all_tasks_blocked()
        assert ctx.communicator.is_waiting(CHAT_ID)
        assert ctx.sessions.cancel(session) is True

    assert outcome == ["cancelled"]
    assert not ctx.communicator.is_waiting(CHAT_ID)


async def test_aborted_signal_stops_the_next_question(
    ctx: BotContext, fake_bot: FakeBot
) -> None:
    session = ctx.sessions.get(CHAT_ID)
    signal = ctx.sessions.set_state(session, ChatState.CALLOUT_ANSWER, cancellable=True)
    first = RenderText(
        key="q1", text="Name?", accepted=replay_condition_text(), parse_type=ParsedResponseType.TEXT
    )
    second = RenderText(
        key="q2", text="Age?", accepted=replay_condition_text(), parse_type=ParsedResponseType.TEXT
    )
    outcome: list[str] = []

    async def run() -> None:
        with pytest.raises(ReplyCancelled):
            await ctx.communicator.send_and_receive_all(
                message("/start"), [first, second], signal=signal
            )
        outcome.append("cancelled")

    async with anyio.create_task_group() as tg:
        tg.start_soon(run)
        await anyio.wait_all_tasks_blocked()
        # the session moves on and drops its controller, the captured signal still fires
        ctx.sessions.cancel(session)
        ctx.sessions.set_state(session, ChatState.START)
        _reply(ctx, "Ada")

    assert outcome == ["cancelled"]
    assert fake_bot.texts() == ["Name?"]


async def test_second_wait_for_same_chat_conflicts(ctx: BotContext) -> None:
    received = []

    async def first() -> None:
        received.append(await ctx.communicator.wait_for_message(message("/start")))

    async with anyio.create_task_group() as tg:
        tg.start_soon(first)
        await anyio.wait_all_tasks_blocked()
        with pytest.raises(ReplyWaitConflict):
            await ctx.communicator.wait_for_message(message("/start"))
        _reply(ctx, "hello")

    assert received[0].text == "hello"


async def test_failed_send_is_skipped(ctx: BotContext, fake_bot: FakeBot) -> None:
    fake_bot.fail_texts = {"two"}
    results = await ctx.communicator.send(
        message("/start"),
        [
            RenderText(key="1", text="one"),
            RenderText(key="2", text="two"),
            RenderEmpty(key="3"),
            RenderText(key="4", text="four"),
        ],
    )
    assert results[1] is None
    assert results[2] is None
    assert fake_bot.texts() == ["one", "four"]


async def test_markdown_is_sent_with_entities(ctx: BotContext, fake_bot: FakeBot) -> None:
    await ctx.communicator.send(message("/start"), RenderMarkdown(key="m", markdown="**bold**"))
    sent = fake_bot.sent[0]
    assert sent.text == "bold"
    assert sent.entities
    assert sent.parse_mode is None


async def test_inline_keyboard_is_tracked_and_removed(
    ctx: BotContext, fake_bot: FakeBot
) -> None:
    keyboard = inline_yes_no("2:parks", ctx.translator)
    [result] = await ctx.communicator.send(
        message("/start"), RenderText(key="details", text="Join?", keyboard=keyboard)
    )
    session = ctx.sessions.get(CHAT_ID)
    assert session.data.latest_keyboard == {
        "message_id": result["message_id"],
        "key": "details",
    }

    await ctx.communicator.remove_inline_keyboard(
        callback("2:parks:yes", message_id=result["message_id"])
    )
    assert fake_bot.edited == [(CHAT_ID, result["message_id"], {"inline_keyboard": []})]
    assert session.data.latest_keyboard is None
