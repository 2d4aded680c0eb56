"""Per-chat conversation state."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import anyio
import msgspec

from .logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "AbortController",
    "AbortSignal",
    "ChatState",
    "SessionData",
    "SessionSnapshot",
    "SessionState",
    "SessionStore",
]


class ChatState(str, enum.Enum):
    INITIAL = "initial"
    START = "start"
    CALLOUT_LIST = "callout:list"
    CALLOUT_DETAILS = "callout:details"
    CALLOUT_ANSWER = "callout:answer"
    CALLOUT_ANSWERED = "callout:answered"


class AbortSignal:
    """Cooperative cancellation flag that can also be awaited."""

    __slots__ = ("_aborted", "_event")

    def __init__(self) -> None:
        self._aborted = False
        self._event: anyio.Event | None = None

    @property
    def aborted(self) -> bool:
        return self._aborted

    def _set(self) -> None:
        self._aborted = True
        if self._event is not None:
            self._event.set()

    async def wait(self) -> None:
        if self._aborted:
            return
        if self._event is None:
            self._event = anyio.Event()
        await self._event.wait()


class AbortController:
    __slots__ = ("signal",)

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self) -> None:
        self.signal._set()


@dataclass(slots=True)
class SessionData:
    """Runtime-only references; never persisted."""

    ctx: Any = None
    abort_controller: AbortController | None = None
    latest_keyboard: dict[str, Any] | None = None


@dataclass(slots=True)
class SessionState:
    chat_id: int
    state: ChatState = ChatState.INITIAL
    data: SessionData = field(default_factory=SessionData)


class SessionSnapshot(msgspec.Struct, forbid_unknown_fields=False):
    state: ChatState = ChatState.INITIAL
    latest_keyboard: dict[str, Any] | None = None


SessionListener = Callable[[SessionState, str], None]


class SessionStore:
    """Owns every chat session and notifies listeners after each change."""

    def __init__(self) -> None:
        self._sessions: dict[int, SessionState] = {}
        self._listeners: list[SessionListener] = []

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _changed(self, session: SessionState, change: str) -> None:
        for listener in list(self._listeners):
            listener(session, change)

    def get(self, chat_id: int) -> SessionState:
        session = self._sessions.get(chat_id)
        if session is None:
            session = SessionState(chat_id=chat_id)
            self._sessions[chat_id] = session
            logger.debug("session.created", chat_id=chat_id)
        return session

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def set_state(
        self,
        session: SessionState,
        state: ChatState,
        *,
        cancellable: bool = False,
    ) -> AbortSignal | None:
        """Move to ``state``; a cancellable state gets a fresh abort signal."""
        session.state = state
        session.data.abort_controller = AbortController() if cancellable else None
        self._changed(session, "state")
        controller = session.data.abort_controller
        return controller.signal if controller is not None else None

    def set_context(self, session: SessionState, ctx: Any) -> None:
        session.data.ctx = ctx
        self._changed(session, "ctx")

    def set_latest_keyboard(
        self, session: SessionState, keyboard: dict[str, Any] | None
    ) -> None:
        session.data.latest_keyboard = keyboard
        self._changed(session, "keyboard")

    def abort_signal(self, session: SessionState) -> AbortSignal | None:
        """Signal of the pending action, ``None`` outside a cancellable state."""
        controller = session.data.abort_controller
        return controller.signal if controller is not None else None

    def cancel(self, session: SessionState) -> bool:
        """Abort the pending action, if any.

        Returns ``True`` only when a live, not yet aborted controller existed.
        """
        controller = session.data.abort_controller
        if controller is None:
            return False
        cancelled = not controller.signal.aborted
        controller.abort()
        session.data.abort_controller = AbortController()
        self._changed(session, "cancel")
        return cancelled

    def reset(self, session: SessionState) -> bool:
        cancelled = self.cancel(session)
        session.data = SessionData()
        session.state = ChatState.INITIAL
        self._changed(session, "reset")
        return cancelled

    def snapshot(self, session: SessionState) -> SessionSnapshot:
        return SessionSnapshot(
            state=session.state, latest_keyboard=session.data.latest_keyboard
        )

    def restore(self, chat_id: int, snapshot: SessionSnapshot) -> SessionState:
        session = self.get(chat_id)
        session.state = snapshot.state
        session.data.latest_keyboard = snapshot.latest_keyboard
        self._changed(session, "restore")
        return session

    def dumps(self) -> bytes:
        return msgspec.json.encode(
            {str(chat_id): self.snapshot(s) for chat_id, s in self._sessions.items()}
        )

    def loads(self, raw: bytes) -> None:
        data = msgspec.json.decode(raw, type=dict[str, SessionSnapshot])
        for chat_id, snapshot in data.items():
            self.restore(int(chat_id), snapshot)
