"""Replay conditions describe which reply is expected from a chat."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, ClassVar, TypeAlias

from .classifier import filter_mime_types_by_patterns
from .model import ReplayType

if TYPE_CHECKING:
    from .callouts.schema import CalloutComponentSchema
    from .i18n import Translator

__all__ = [
    "ConditionFactory",
    "IllegalConfiguration",
    "ReplayCondition",
    "ReplayConditionAny",
    "ReplayConditionCalloutComponentSchema",
    "ReplayConditionFile",
    "ReplayConditionNone",
    "ReplayConditionSelection",
    "ReplayConditionText",
    "replay_condition_any",
    "replay_condition_callout_component",
    "replay_condition_file",
    "replay_condition_none",
    "replay_condition_selection",
    "replay_condition_text",
]


class IllegalConfiguration(ValueError):
    """A condition was built with contradicting options."""


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayConditionBase:
    type: ClassVar[ReplayType]
    multiple: bool = False
    required: bool = False
    done_texts: tuple[str, ...] = ()
    skip_texts: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "done_texts", tuple(self.done_texts))
        object.__setattr__(self, "skip_texts", tuple(self.skip_texts))
        if self.multiple and not self.done_texts:
            raise IllegalConfiguration(
                f"{self.type.value} condition with multiple replies needs done texts"
            )


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayConditionNone(ReplayConditionBase):
    type: ClassVar[ReplayType] = ReplayType.NONE


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayConditionAny(ReplayConditionBase):
    type: ClassVar[ReplayType] = ReplayType.ANY


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayConditionText(ReplayConditionBase):
    type: ClassVar[ReplayType] = ReplayType.TEXT
    texts: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        ReplayConditionBase.__post_init__(self)
        if self.texts is not None:
            object.__setattr__(self, "texts", tuple(self.texts))


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayConditionFile(ReplayConditionBase):
    type: ClassVar[ReplayType] = ReplayType.FILE
    mime_types: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        ReplayConditionBase.__post_init__(self)
        object.__setattr__(self, "mime_types", tuple(self.mime_types))


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayConditionSelection(ReplayConditionBase):
    type: ClassVar[ReplayType] = ReplayType.SELECTION
    value_label: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        ReplayConditionBase.__post_init__(self)
        object.__setattr__(
            self, "value_label", MappingProxyType(dict(self.value_label))
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplayConditionCalloutComponentSchema(ReplayConditionBase):
    type: ClassVar[ReplayType] = ReplayType.CALLOUT_COMPONENT_SCHEMA
    schema: CalloutComponentSchema


ReplayCondition: TypeAlias = (
    ReplayConditionNone
    | ReplayConditionAny
    | ReplayConditionText
    | ReplayConditionFile
    | ReplayConditionSelection
    | ReplayConditionCalloutComponentSchema
)


def replay_condition_none() -> ReplayConditionNone:
    """No reply is expected."""
    return ReplayConditionNone()


def replay_condition_any(
    *,
    multiple: bool = False,
    required: bool = False,
    done_texts: Iterable[str] = (),
    skip_texts: Iterable[str] = (),
) -> ReplayConditionAny:
    return ReplayConditionAny(
        multiple=multiple,
        required=required,
        done_texts=tuple(done_texts),
        skip_texts=tuple(skip_texts),
    )


def replay_condition_text(
    *,
    multiple: bool = False,
    required: bool = False,
    texts: Iterable[str] | None = None,
    done_texts: Iterable[str] = (),
    skip_texts: Iterable[str] = (),
) -> ReplayConditionText:
    """Accept text, optionally only one of ``texts`` (case-insensitive)."""
    return ReplayConditionText(
        multiple=multiple,
        required=required,
        texts=tuple(texts) if texts is not None else None,
        done_texts=tuple(done_texts),
        skip_texts=tuple(skip_texts),
    )


def replay_condition_selection(
    value_label: Mapping[str, str],
    *,
    multiple: bool = False,
    required: bool = False,
    done_texts: Iterable[str] = (),
    skip_texts: Iterable[str] = (),
) -> ReplayConditionSelection:
    """Accept one option by its 1-based number or by its label."""
    return ReplayConditionSelection(
        multiple=multiple,
        required=required,
        value_label=value_label,
        done_texts=tuple(done_texts),
        skip_texts=tuple(skip_texts),
    )


def replay_condition_file(
    *,
    multiple: bool = False,
    required: bool = False,
    mime_types: Iterable[str] = (),
    done_texts: Iterable[str] = (),
    skip_texts: Iterable[str] = (),
) -> ReplayConditionFile:
    return ReplayConditionFile(
        multiple=multiple,
        required=required,
        mime_types=tuple(mime_types),
        done_texts=tuple(done_texts),
        skip_texts=tuple(skip_texts),
    )


def replay_condition_callout_component(
    schema: CalloutComponentSchema,
    *,
    multiple: bool = False,
    required: bool = False,
    done_texts: Iterable[str] = (),
    skip_texts: Iterable[str] = (),
) -> ReplayConditionCalloutComponentSchema:
    return ReplayConditionCalloutComponentSchema(
        schema=schema,
        multiple=multiple,
        required=required,
        done_texts=tuple(done_texts),
        skip_texts=tuple(skip_texts),
    )


DONE_TEXT_KEY = "bot.reactions.messages.done"
SKIP_TEXT_KEY = "bot.reactions.messages.skip"


class ConditionFactory:
    """Builds conditions with translated done and skip sentinels.

    Multiple conditions get the translated done text, optional ones the
    translated skip text, unless the caller passes its own.
    """

    def __init__(self, translator: Translator) -> None:
        self._translator = translator

    def _sentinels(
        self,
        multiple: bool,
        required: bool,
        done_texts: Iterable[str] | None,
        skip_texts: Iterable[str] | None,
    ) -> tuple[tuple[str, ...], tuple[str, ...]]:
        if done_texts is None:
            done_texts = (self._translator.t(DONE_TEXT_KEY),) if multiple else ()
        if skip_texts is None:
            skip_texts = () if required else (self._translator.t(SKIP_TEXT_KEY),)
        return tuple(done_texts), tuple(skip_texts)

    def none(self) -> ReplayConditionNone:
        return replay_condition_none()

    def any(
        self,
        *,
        multiple: bool = False,
        required: bool = False,
        done_texts: Iterable[str] | None = None,
        skip_texts: Iterable[str] | None = None,
    ) -> ReplayConditionAny:
        done, skip = self._sentinels(multiple, required, done_texts, skip_texts)
        return replay_condition_any(
            multiple=multiple, required=required, done_texts=done, skip_texts=skip
        )

    def text(
        self,
        *,
        multiple: bool = False,
        required: bool = False,
        texts: Iterable[str] | None = None,
        done_texts: Iterable[str] | None = None,
        skip_texts: Iterable[str] | None = None,
    ) -> ReplayConditionText:
        done, skip = self._sentinels(multiple, required, done_texts, skip_texts)
        return replay_condition_text(
            multiple=multiple,
            required=required,
            texts=texts,
            done_texts=done,
            skip_texts=skip,
        )

    def selection(
        self,
        value_label: Mapping[str, str],
        *,
        multiple: bool = False,
        required: bool = False,
        done_texts: Iterable[str] | None = None,
        skip_texts: Iterable[str] | None = None,
    ) -> ReplayConditionSelection:
        done, skip = self._sentinels(multiple, required, done_texts, skip_texts)
        return replay_condition_selection(
            value_label,
            multiple=multiple,
            required=required,
            done_texts=done,
            skip_texts=skip,
        )

    def file(
        self,
        *,
        multiple: bool = False,
        required: bool = False,
        mime_types: Iterable[str] = (),
        done_texts: Iterable[str] | None = None,
        skip_texts: Iterable[str] | None = None,
    ) -> ReplayConditionFile:
        done, skip = self._sentinels(multiple, required, done_texts, skip_texts)
        return replay_condition_file(
            multiple=multiple,
            required=required,
            mime_types=mime_types,
            done_texts=done,
            skip_texts=skip,
        )

    def file_pattern(
        self,
        file_pattern: str | None,
        *,
        multiple: bool = False,
        required: bool = False,
        done_texts: Iterable[str] | None = None,
        skip_texts: Iterable[str] | None = None,
    ) -> ReplayConditionFile:
        """Like :meth:`file`, with MIME types expanded from e.g. ``image/*,.pdf``."""
        return self.file(
            multiple=multiple,
            required=required,
            mime_types=filter_mime_types_by_patterns(file_pattern),
            done_texts=done_texts,
            skip_texts=skip_texts,
        )

    def callout_component(
        self,
        schema: CalloutComponentSchema,
        *,
        multiple: bool = False,
        required: bool = False,
        done_texts: Iterable[str] | None = None,
        skip_texts: Iterable[str] | None = None,
    ) -> ReplayConditionCalloutComponentSchema:
        done, skip = self._sentinels(multiple, required, done_texts, skip_texts)
        return replay_condition_callout_component(
            schema,
            multiple=multiple,
            required=required,
            done_texts=done,
            skip_texts=skip,
        )
