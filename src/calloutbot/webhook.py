"""Authenticated HTTP endpoint other services use to notify the bot."""

from __future__ import annotations

from typing import Any

import jwt
import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route

from .content import ContentWatcher
from .events import EventBus
from .logging import get_logger

logger = get_logger(__name__)

__all__ = ["InternalWebhook", "WebhookError", "extract_token", "sign", "verify"]

ALGORITHM = "HS256"
RELOAD_EVENT = "network:reload"


class WebhookError(Exception):
    pass


def extract_token(header: str | None) -> str | None:
    if not header:
        return None
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def sign(payload: dict[str, Any] | None, secret: str) -> str:
    return jwt.encode(payload or {}, secret, algorithm=ALGORITHM)


def verify(header: str | None, secret: str) -> dict[str, Any]:
    """Decode the bearer token of ``header``; raises on any failure."""
    token = extract_token(header)
    if token is None:
        raise WebhookError("No token found")
    return jwt.decode(token, secret, algorithms=[ALGORITHM])


class InternalWebhook:
    def __init__(
        self,
        *,
        secret: str,
        bus: EventBus,
        watcher: ContentWatcher | None = None,
    ) -> None:
        if not secret:
            raise ValueError("Service secret is empty")
        self._secret = secret
        self._bus = bus
        self._watcher = watcher
        self.app = Starlette(
            routes=[Route("/{path:path}", self.handle, methods=["POST"])]
        )

    async def emit_reload(self, payload: dict[str, Any]) -> None:
        content = await self._watcher.refresh() if self._watcher is not None else {}
        self._bus.emit(RELOAD_EVENT, {"payload": payload, **content})

    async def handle(self, request: Request) -> Response:
        event_name = request.path_params["path"].strip("/").replace("/", ":")
        try:
            payload = verify(request.headers.get("authorization"), self._secret)
            if event_name != "reload":
                raise WebhookError(f'Unknown internal service event "{event_name}"')
            await self.emit_reload(payload)
        except (WebhookError, jwt.InvalidTokenError) as e:
            logger.warning("webhook.rejected", event_name=event_name, error=str(e))
            return PlainTextResponse(str(e), status_code=401)
        logger.info("webhook.accepted", event_name=event_name)
        return Response(status_code=200)

    async def serve(self, host: str, port: int) -> None:
        config = uvicorn.Config(self.app, host=host, port=port, log_config=None)
        await uvicorn.Server(config).serve()
