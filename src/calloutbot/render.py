"""Outbound message payloads.

A ``Render`` is one chat message plus the reply the bot expects after it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, ClassVar, TypeAlias

from .conditions import ReplayCondition, replay_condition_none
from .model import ParsedResponseType, RenderResponseParsed


class RenderType(str, enum.Enum):
    TEXT = "text"
    MARKDOWN = "markdown"
    HTML = "html"
    PHOTO = "photo"
    EMPTY = "empty"


@dataclass(frozen=True, slots=True, kw_only=True)
class RenderBase:
    type: ClassVar[RenderType]
    key: str
    accepted: ReplayCondition = field(default_factory=replay_condition_none)
    parse_type: ParsedResponseType = ParsedResponseType.NONE
    keyboard: dict[str, Any] | None = None
    remove_keyboard: bool = False

    @property
    def expects_reply(self) -> bool:
        return self.parse_type is not ParsedResponseType.NONE


@dataclass(frozen=True, slots=True, kw_only=True)
class RenderText(RenderBase):
    type: ClassVar[RenderType] = RenderType.TEXT
    text: str


@dataclass(frozen=True, slots=True, kw_only=True)
class RenderMarkdown(RenderBase):
    type: ClassVar[RenderType] = RenderType.MARKDOWN
    markdown: str


@dataclass(frozen=True, slots=True, kw_only=True)
class RenderHtml(RenderBase):
    type: ClassVar[RenderType] = RenderType.HTML
    html: str


@dataclass(frozen=True, slots=True, kw_only=True)
class RenderPhoto(RenderBase):
    """``photo`` is a URL or a Telegram file id; the caption is Markdown."""

    type: ClassVar[RenderType] = RenderType.PHOTO
    photo: str
    caption: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RenderEmpty(RenderBase):
    type: ClassVar[RenderType] = RenderType.EMPTY


Render: TypeAlias = RenderText | RenderMarkdown | RenderHtml | RenderPhoto | RenderEmpty


@dataclass(frozen=True, slots=True)
class RenderResponse:
    """What the chat answered to one ``Render``."""

    render: Render
    responses: RenderResponseParsed
