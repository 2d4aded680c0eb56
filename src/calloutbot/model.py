"""Reply matching domain types (condition kinds, accepted results, parsed answers)."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, TypeAlias

if TYPE_CHECKING:
    from .telegram.types import TelegramIncomingMessage


class ReplayType(str, enum.Enum):
    NONE = "none"
    ANY = "any"
    TEXT = "text"
    FILE = "file"
    SELECTION = "selection"
    CALLOUT_COMPONENT_SCHEMA = "callout-component-schema"


class ParsedResponseType(str, enum.Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    FILE = "file"
    ADDRESS = "address"
    SELECTION = "selection"
    MULTI_SELECT = "multi-select"
    ANY = "any"
    NONE = "none"
    CALLOUT_COMPONENT = "callout-component"


class AcceptedFileType(str, enum.Enum):
    PHOTO = "photo"
    DOCUMENT = "document"
    VIDEO = "video"
    AUDIO = "audio"
    LOCATION = "location"
    CONTACT = "contact"
    ADDRESS = "address"
    ANY = "any"


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayAcceptedBase:
    type: ClassVar[ReplayType]
    accepted: bool
    context: TelegramIncomingMessage | None
    is_done_message: bool = False
    is_skip_message: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayAcceptedNone(ReplayAcceptedBase):
    """Nothing acceptable was received."""

    type: ClassVar[ReplayType] = ReplayType.NONE
    accepted: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayAcceptedAny(ReplayAcceptedBase):
    type: ClassVar[ReplayType] = ReplayType.ANY


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayAcceptedText(ReplayAcceptedBase):
    type: ClassVar[ReplayType] = ReplayType.TEXT
    text: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayAcceptedFile(ReplayAcceptedBase):
    type: ClassVar[ReplayType] = ReplayType.FILE
    file_type: AcceptedFileType = AcceptedFileType.ANY
    file_id: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayAcceptedSelection(ReplayAcceptedBase):
    type: ClassVar[ReplayType] = ReplayType.SELECTION
    value: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayAcceptedCalloutComponent(ReplayAcceptedBase):
    type: ClassVar[ReplayType] = ReplayType.CALLOUT_COMPONENT_SCHEMA
    answer: Any = None


ReplayAccepted: TypeAlias = (
    ReplayAcceptedNone
    | ReplayAcceptedAny
    | ReplayAcceptedText
    | ReplayAcceptedFile
    | ReplayAcceptedSelection
    | ReplayAcceptedCalloutComponent
)


@dataclass(frozen=True, slots=True)
class RenderResponseParsed:
    """A typed answer; ``data`` is a list when ``multiple`` is set."""

    type: ParsedResponseType
    multiple: bool
    data: Any
    replay: ReplayAccepted | list[ReplayAccepted] | None


NONE_RESPONSE = RenderResponseParsed(
    type=ParsedResponseType.NONE,
    multiple=False,
    data=None,
    replay=None,
)
