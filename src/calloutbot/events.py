"""Scoped event fan-out.

An inbound update is emitted under progressively more specific scopes,
broadest first, each followed by its per-user variant::

    callback_query
    callback_query:user-42
    callback_query:data
    callback_query:data:user-42
    callback_query:data:3
    ...
"""

from __future__ import annotations

import inspect
import math
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream

from .logging import get_logger
from .telegram.types import TelegramCallbackQuery, TelegramIncomingUpdate

if TYPE_CHECKING:
    from anyio.abc import TaskGroup

logger = get_logger(__name__)

SCOPE_SEPARATOR = ":"
USER_PREFIX = "user-"

Listener = Callable[[Any], Awaitable[None] | None]


def user_scope(scope: str, user_id: int) -> str:
    return f"{scope}{SCOPE_SEPARATOR}{USER_PREFIX}{user_id}"


@dataclass(frozen=True, slots=True)
class EventDescriptor:
    category: str
    subcategory: str | None = None
    payload_key: tuple[str, ...] = ()
    user_id: int | None = None

    def segments(self) -> tuple[str, ...]:
        head = (self.category,) if self.subcategory is None else (
            self.category,
            self.subcategory,
        )
        return head + self.payload_key

    @property
    def name(self) -> str:
        return SCOPE_SEPARATOR.join(self.segments())

    def scopes(self) -> Iterator[str]:
        prefix: list[str] = []
        for segment in self.segments():
            prefix.append(segment)
            scope = SCOPE_SEPARATOR.join(prefix)
            yield scope
            if self.user_id is not None:
                yield user_scope(scope, self.user_id)

    @classmethod
    def parse(cls, name: str, *, user_id: int | None = None) -> EventDescriptor:
        """Descriptor for a ``:`` separated name such as ``network:reload``."""
        parts = [part for part in name.split(SCOPE_SEPARATOR) if part]
        if not parts:
            raise ValueError("event name is empty")
        return cls(
            category=parts[0],
            subcategory=parts[1] if len(parts) > 1 else None,
            payload_key=tuple(parts[2:]),
            user_id=user_id,
        )


def describe_update(update: TelegramIncomingUpdate) -> EventDescriptor:
    user_id = update.sender_id if update.sender_id is not None else update.chat_id
    if isinstance(update, TelegramCallbackQuery):
        payload = tuple(update.data.split(SCOPE_SEPARATOR)) if update.data else ()
        return EventDescriptor(
            category="callback_query",
            subcategory="data",
            payload_key=payload,
            user_id=user_id,
        )
    return EventDescriptor(category="message", user_id=user_id)


class EventBus:
    """Named listeners; async listeners run in the bound task group."""

    def __init__(self, task_group: TaskGroup | None = None) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._once: list[Listener] = []
        self._task_group = task_group

    def bind(self, task_group: TaskGroup | None) -> None:
        self._task_group = task_group

    @property
    def bound(self) -> bool:
        return self._task_group is not None

    def on(self, scope: str, listener: Listener) -> None:
        self._listeners.setdefault(scope, []).append(listener)

    def once(self, scope: str, listener: Listener) -> None:
        self._once.append(listener)
        self.on(scope, listener)

    def off(self, scope: str, listener: Listener) -> None:
        if listener in self._once:
            self._once.remove(listener)
        listeners = self._listeners.get(scope)
        if not listeners:
            return
        self._listeners[scope] = [item for item in listeners if item != listener]
        if not self._listeners[scope]:
            del self._listeners[scope]

    def listener_count(self, scope: str) -> int:
        return len(self._listeners.get(scope, ()))

    def emit(self, scope: str, detail: Any) -> int:
        """Call every listener of ``scope`` in registration order."""
        listeners = list(self._listeners.get(scope, ()))
        for listener in listeners:
            if listener in self._once:
                self.off(scope, listener)
            self._dispatch(scope, listener, detail)
        return len(listeners)

    def emit_detailed(self, descriptor: EventDescriptor, detail: Any) -> list[str]:
        emitted: list[str] = []
        for scope in descriptor.scopes():
            self.emit(scope, detail)
            emitted.append(scope)
        return emitted

    def _dispatch(self, scope: str, listener: Listener, detail: Any) -> None:
        if inspect.iscoroutinefunction(listener):
            if self._task_group is None:
                raise RuntimeError(f"no task group bound for async listener on {scope}")
            self._task_group.start_soon(self._run_async, scope, listener, detail)
            return
        try:
            listener(detail)
        except Exception:  # noqa: BLE001
            logger.exception("events.listener_failed", scope=scope)

    async def _run_async(self, scope: str, listener: Listener, detail: Any) -> None:
        try:
            await listener(detail)  # type: ignore[misc]
        except Exception:  # noqa: BLE001
            logger.exception("events.listener_failed", scope=scope)

    @asynccontextmanager
    async def subscribe(self, scope: str) -> AsyncIterator[MemoryObjectReceiveStream[Any]]:
        """Buffer every event emitted on ``scope`` while the context is open."""
        send, receive = anyio.create_memory_object_stream[Any](math.inf)
        listener = send.send_nowait
        self.on(scope, listener)
        try:
            yield receive
        finally:
            self.off(scope, listener)
            send.close()
            receive.close()

    async def wait_for(self, scope: str) -> Any:
        async with self.subscribe(scope) as events:
            return await events.receive()
