import pytest

from calloutbot.telegram.api_models import decode_update
from calloutbot.telegram.parsing import parse_incoming_update, poll_incoming
from calloutbot.telegram.types import TelegramCallbackQuery, TelegramIncomingMessage


def _message_update(**message) -> dict:
    return {
        "update_id": 1,
        "message": {
            "message_id": 10,
            "chat": {"id": 123, "type": "private"},
            "from": {"id": 42, "username": "reader"},
            **message,
        },
    }


def test_parse_text_message() -> None:
    parsed = parse_incoming_update(_message_update(text="hello"))
    assert isinstance(parsed, TelegramIncomingMessage)
    assert parsed.chat_id == 123
    assert parsed.sender_id == 42
    assert parsed.text == "hello"
    assert parsed.raw["from"]["username"] == "reader"
    assert not parsed.is_command


def test_parse_photo_uses_caption() -> None:
    parsed = parse_incoming_update(
        _message_update(
            caption="/start",
            photo=[{"file_id": "p1", "width": 10, "height": 10}],
        )
    )
    assert parsed.text == "/start"
    assert parsed.is_command
    assert parsed.message.photo[0].file_id == "p1"


def test_parse_callback_query() -> None:
    parsed = parse_incoming_update(
        {
            "update_id": 2,
            "callback_query": {
                "id": "cbq",
                "from": {"id": 42, "first_name": "Ada"},
                "data": "1:parks",
                "message": {"message_id": 77, "chat": {"id": 123, "type": "private"}},
            },
        }
    )
    assert isinstance(parsed, TelegramCallbackQuery)
    assert parsed.chat_id == 123
    assert parsed.message_id == 77
    assert parsed.callback_query_id == "cbq"
    assert parsed.data == "1:parks"
    assert parsed.raw["from"]["first_name"] == "Ada"


@pytest.mark.parametrize(
    "update",
    [
        {"update_id": 3},
        {"update_id": 4, "edited_message": {"message_id": 1}},
        {"update_id": 5, "callback_query": {"id": "x", "data": "1:a"}},
        {"update_id": "bad"},
    ],
)
def test_ignored_updates(update: dict) -> None:
    assert parse_incoming_update(update) is None


def test_decoded_update_is_accepted() -> None:
    update = decode_update(
        b'{"update_id": 9, "message": {"message_id": 1, "chat": {"id": 5, "type": "group"},'
        b' "text": "hi"}}'
    )
    parsed = parse_incoming_update(update)
    assert parsed.chat_id == 5
    assert parsed.sender_id is None


class _ScriptedBot:
    def __init__(self, batches: list[list[dict] | None]) -> None:
        self.batches = batches
        self.offsets: list[int | None] = []

    async def get_updates(self, offset, timeout_s=50, allowed_updates=None):
        self.offsets.append(offset)
        return self.batches.pop(0)


@pytest.mark.anyio
async def test_poll_incoming_advances_offset_and_retries() -> None:
    bot = _ScriptedBot(
        [
            [_message_update(text="one"), {"update_id": 2}],
            None,
            [{**_message_update(text="two"), "update_id": 3}],
        ]
    )
    received = []
    async for update in poll_incoming(bot, retry_delay_s=0):
        received.append(update.text)
        if len(received) == 2:
            break

    assert received == ["one", "two"]
    assert bot.offsets == [None, 3, 3]
