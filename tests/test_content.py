import json

import anyio
import httpx
import pytest

from calloutbot.content import ACTIVE_CALLOUTS_RULES, ContentApiError, ContentClient, ContentWatcher
from calloutbot.events import EventBus
from tests.fakes import FakeContent

pytestmark = pytest.mark.anyio


def _client(handler) -> tuple[ContentClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(record))
    client = ContentClient(
        api_url="https://api.example.org/", api_path="/api/1.0/", token="tok", client=http
    )
    return client, requests


class TestContentClient:
    async def test_get_content(self) -> None:
        client, requests = _client(lambda request: httpx.Response(200, json={"name": "Parks"}))
        assert await client.get("general") == {"name": "Parks"}
        [request] = requests
        assert str(request.url) == "https://api.example.org/api/1.0/content/general"
        assert request.headers["authorization"] == "Bearer tok"

    async def test_get_callout_with_form(self) -> None:
        client, requests = _client(
            lambda request: httpx.Response(
                200,
                json={
                    "slug": "parks",
                    "title": "Parks",
                    "formSchema": {"slides": [{"id": "s1", "components": []}]},
                },
            )
        )
        callout = await client.get_callout("parks", with_form=True)
        assert callout.form_schema.slides[0].id == "s1"
        assert requests[0].url.params.get_list("with[]") == ["form"]

    async def test_list_callouts_filters_active(self) -> None:
        client, requests = _client(
            lambda request: httpx.Response(
                200,
                json={"items": [{"slug": "a", "title": "A"}, {"title": "no slug"}]},
            )
        )
        callouts = await client.list_callouts(5)
        assert [callout.slug for callout in callouts] == ["a"]
        params = requests[0].url.params
        assert params["limit"] == "5"
        assert params["sort"] == "title"
        assert json.loads(params["rules"]) == ACTIVE_CALLOUTS_RULES

    async def test_create_response(self) -> None:
        client, requests = _client(lambda request: httpx.Response(204))
        result = await client.create_callout_response(
            "parks", {"s1": {"name": "Ada"}}, guest_name="reader"
        )
        assert result is None
        [request] = requests
        assert request.method == "POST"
        assert request.url.path == "/api/1.0/callout/parks/responses"
        assert json.loads(request.content) == {
            "answers": {"s1": {"name": "Ada"}},
            "guestName": "reader",
        }

    async def test_http_error_status(self) -> None:
        client, _ = _client(lambda request: httpx.Response(404, text="not found"))
        with pytest.raises(ContentApiError) as exc:
            await client.get_callout("missing")
        assert exc.value.status == 404

    async def test_network_error(self) -> None:
        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        client, _ = _client(fail)
        with pytest.raises(ContentApiError, match="failed"):
            await client.get("general")

    async def test_malformed_callout(self) -> None:
        client, _ = _client(lambda request: httpx.Response(200, json={"title": 3}))
        with pytest.raises(ContentApiError, match="malformed"):
            await client.get_callout("parks")

    def test_empty_token(self) -> None:
        with pytest.raises(ValueError):
            ContentClient(api_url="x", api_path="y", token="")


class TestContentWatcher:
    async def test_first_poll_only_caches(self) -> None:
        bus = EventBus()
        changes: list[dict] = []
        bus.on("content:general:changed", changes.append)
        source = FakeContent(content={"general": {"v": 1}})
        watcher = ContentWatcher(source, bus, ["general", "general"])

        assert watcher.content_ids == ("general",)
        assert await watcher.poll_once("general") is False
        assert await watcher.poll_once("general") is False
        assert watcher.get("general") == {"v": 1}
        assert changes == []

        source.content["general"] = {"v": 2}
        assert await watcher.poll_once("general") is True
        assert changes == [{"old": {"v": 1}, "new": {"v": 2}}]

    async def test_failed_poll_keeps_watching(self) -> None:
        source = FakeContent(content={"general": {"v": 1}}, fail_get=True)
        watcher = ContentWatcher(source, EventBus(), ["general"], interval_s=0.01)

        with anyio.move_on_after(0.1):
            await watcher.run()

        assert source.gets >= 2
        assert watcher.get("general") is None
