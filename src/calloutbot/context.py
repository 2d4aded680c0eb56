from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from .callouts.render import CalloutRenderer
from .callouts.schema import CalloutData
from .communication import Communicator
from .conditions import ConditionFactory
from .events import EventBus
from .i18n import Translator
from .messages import MessageRenderer
from .session import SessionStore
from .telegram.client import BotClient


class CalloutSource(Protocol):
    async def get_callout(self, slug: str, *, with_form: bool = False) -> CalloutData: ...

    async def list_callouts(self, limit: int = 10) -> list[CalloutData]: ...

    async def create_callout_response(
        self,
        slug: str,
        answers: Mapping[str, Any],
        *,
        guest_name: str | None = None,
        guest_email: str | None = None,
    ) -> Any: ...


@dataclass(frozen=True, slots=True)
class BotContext:
    """Collaborators shared by commands and button handlers."""

    bot: BotClient
    bus: EventBus
    sessions: SessionStore
    communicator: Communicator
    translator: Translator
    messages: MessageRenderer
    conditions: ConditionFactory
    callouts: CalloutRenderer
    content: CalloutSource
    callout_list_limit: int = 10
