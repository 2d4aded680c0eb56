"""Content and callout API client plus a change watcher for content ids."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol

import anyio
import httpx
import msgspec

from .callouts.schema import CalloutData
from .events import EventBus
from .logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "ACTIVE_CALLOUTS_RULES",
    "ContentApiError",
    "ContentClient",
    "ContentSource",
    "ContentWatcher",
]

ACTIVE_CALLOUTS_RULES: dict[str, Any] = {
    "condition": "AND",
    "rules": [
        {"field": "status", "operator": "equal", "value": ["open"]},
        {"field": "expires", "operator": "is_empty", "value": []},
    ],
}


class ContentApiError(RuntimeError):
    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ContentSource(Protocol):
    async def get(self, content_id: str) -> dict[str, Any]: ...


class ContentClient:
    def __init__(
        self,
        *,
        api_url: str,
        api_path: str,
        token: str,
        timeout_s: float = 30,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not token:
            raise ValueError("Content API token is empty")
        self._base = api_url.rstrip("/") + "/" + api_path.strip("/")
        self._headers = {"Authorization": f"Bearer {token}"}
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        self._owns_client = client is None

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_data: Any = None,
    ) -> Any:
        url = f"{self._base}/{path.lstrip('/')}"
        logger.debug("content.request", method=method, url=url, params=params)
        try:
            resp = await self._client.request(
                method, url, params=params, json=json_data, headers=self._headers
            )
        except httpx.HTTPError as e:
            raise ContentApiError(f"{method} {url} failed: {e}") from e

        if resp.status_code >= 400:
            raise ContentApiError(
                f"{method} {url} returned {resp.status_code}: {resp.text}",
                status=resp.status_code,
            )
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ContentApiError(f"{method} {url} returned invalid JSON") from e

    async def get(self, content_id: str) -> dict[str, Any]:
        data = await self._request("GET", f"content/{content_id}")
        if not isinstance(data, dict):
            raise ContentApiError(f"content {content_id!r} is not an object")
        return data

    async def get_callout(self, slug: str, *, with_form: bool = False) -> CalloutData:
        params = {"with[]": ["form"]} if with_form else None
        data = await self._request("GET", f"callout/{slug}", params=params)
        try:
            return msgspec.convert(data, type=CalloutData)
        except msgspec.ValidationError as e:
            raise ContentApiError(f"callout {slug!r} is malformed: {e}") from e

    async def list_callouts(self, limit: int = 10) -> list[CalloutData]:
        """Open, non expiring callouts sorted by title."""
        params = {
            "limit": limit,
            "sort": "title",
            "rules": msgspec.json.encode(ACTIVE_CALLOUTS_RULES).decode(),
        }
        data = await self._request("GET", "callout", params=params)
        items = data.get("items", []) if isinstance(data, dict) else []
        callouts = []
        for item in items:
            try:
                callouts.append(msgspec.convert(item, type=CalloutData))
            except msgspec.ValidationError as e:
                logger.warning("content.callout.malformed", error=str(e))
        return callouts

    async def create_callout_response(
        self,
        slug: str,
        answers: Mapping[str, Any],
        *,
        guest_name: str | None = None,
        guest_email: str | None = None,
    ) -> Any:
        payload: dict[str, Any] = {"answers": dict(answers)}
        if guest_name is not None:
            payload["guestName"] = guest_name
        if guest_email is not None:
            payload["guestEmail"] = guest_email
        return await self._request("POST", f"callout/{slug}/responses", json_data=payload)


class ContentWatcher:
    """Polls content ids and emits ``content:<id>:changed`` on every change.

    The first successful poll of an id only fills the cache.
    """

    def __init__(
        self,
        source: ContentSource,
        bus: EventBus,
        content_ids: Iterable[str],
        *,
        interval_s: float = 60.0,
    ) -> None:
        self._source = source
        self._bus = bus
        self.content_ids = tuple(dict.fromkeys(content_ids))
        self.interval_s = interval_s
        self._cache: dict[str, dict[str, Any]] = {}

    def get(self, content_id: str) -> dict[str, Any] | None:
        return self._cache.get(content_id)

    async def poll_once(self, content_id: str) -> bool:
        """Fetch ``content_id`` and report whether it changed."""
        new = await self._source.get(content_id)
        old = self._cache.get(content_id)
        self._cache[content_id] = new
        if old is None or old == new:
            return False
        logger.info("content.changed", content_id=content_id)
        self._bus.emit(f"content:{content_id}:changed", {"old": old, "new": new})
        return True

    async def refresh(self) -> dict[str, dict[str, Any]]:
        for content_id in self.content_ids:
            await self.poll_once(content_id)
        return dict(self._cache)

    async def _watch(self, content_id: str) -> None:
        while True:
            try:
                await self.poll_once(content_id)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "content.poll.failed",
                    content_id=content_id,
                    error=str(exc),
                    error_type=exc.__class__.__name__,
                )
            await anyio.sleep(self.interval_s)

    async def run(self) -> None:
        async with anyio.create_task_group() as tg:
            for content_id in self.content_ids:
                tg.start_soon(self._watch, content_id)
