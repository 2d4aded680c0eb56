import json

import httpx
import pytest

from calloutbot.telegram.client import (
    TelegramClient,
    TelegramRetryAfter,
    _retry_after_from_payload,
)

pytestmark = pytest.mark.anyio


def _client(handler) -> tuple[TelegramClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(record))
    return TelegramClient("123:abc", client=http), requests


def test_empty_token_is_rejected() -> None:
    with pytest.raises(ValueError):
        TelegramClient("")


def test_retry_after_from_payload() -> None:
    assert _retry_after_from_payload({}) is None
    assert _retry_after_from_payload({"parameters": {"retry_after": 3}}) == 3.0
    assert _retry_after_from_payload({"description": "Too Many Requests: retry after 7"}) == 7.0


async def test_send_message_payload() -> None:
    client, requests = _client(
        lambda request: httpx.Response(200, json={"ok": True, "result": {"message_id": 5}})
    )
    result = await client.send_message(
        123,
        "hello",
        entities=[{"type": "bold", "offset": 0, "length": 5}],
        reply_markup={"remove_keyboard": True},
    )

    assert result == {"message_id": 5}
    [request] = requests
    assert request.url.path == "/bot123:abc/sendMessage"
    assert json.loads(request.content) == {
        "chat_id": 123,
        "text": "hello",
        "entities": [{"type": "bold", "offset": 0, "length": 5}],
        "reply_markup": {"remove_keyboard": True},
    }


async def test_send_photo_payload() -> None:
    client, requests = _client(
        lambda request: httpx.Response(200, json={"ok": True, "result": {"message_id": 6}})
    )
    await client.send_photo(1, "https://img/x.jpg", caption="hi")
    assert json.loads(requests[0].content) == {
        "chat_id": 1,
        "photo": "https://img/x.jpg",
        "caption": "hi",
    }


async def test_set_my_commands_with_chat_scope() -> None:
    client, requests = _client(
        lambda request: httpx.Response(200, json={"ok": True, "result": True})
    )
    commands = [{"command": "cancel", "description": "Cancel"}]
    assert await client.set_my_commands(commands, scope={"type": "chat", "chat_id": 9})
    assert json.loads(requests[0].content) == {
        "commands": commands,
        "scope": {"type": "chat", "chat_id": 9},
    }


async def test_api_error_returns_none() -> None:
    client, _ = _client(
        lambda request: httpx.Response(400, json={"ok": False, "description": "bad"})
    )
    assert await client.send_message(1, "x") is None
    assert await client.answer_callback_query("q") is False


async def test_invalid_json_returns_none() -> None:
    client, _ = _client(lambda request: httpx.Response(200, text="<html>"))
    assert await client.get_me() is None


async def test_network_error_returns_none() -> None:
    def fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    client, _ = _client(fail)
    assert await client.set_my_commands([]) is False


async def test_rate_limit_raises() -> None:
    client, _ = _client(
        lambda request: httpx.Response(
            429, json={"ok": False, "parameters": {"retry_after": 2}}
        )
    )
    with pytest.raises(TelegramRetryAfter) as exc:
        await client.send_message(1, "x")
    assert exc.value.retry_after == 2.0


async def test_get_updates_waits_out_rate_limit() -> None:
    responses = [
        httpx.Response(429, json={"ok": False, "parameters": {"retry_after": 0}}),
        httpx.Response(200, json={"ok": True, "result": [{"update_id": 1}]}),
    ]
    client, requests = _client(lambda request: responses.pop(0))
    updates = await client.get_updates(offset=4, allowed_updates=["message"])

    assert updates == [{"update_id": 1}]
    assert len(requests) == 2
    assert json.loads(requests[1].content) == {
        "timeout": 50,
        "offset": 4,
        "allowed_updates": ["message"],
    }


async def test_close_leaves_shared_client_open() -> None:
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={}))
    )
    client = TelegramClient("123:abc", client=http)
    await client.close()
    assert not http.is_closed
    await http.aclose()
