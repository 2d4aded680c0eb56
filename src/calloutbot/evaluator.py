"""Decide whether an inbound message satisfies a pending replay condition."""

from __future__ import annotations

from collections.abc import Iterable

from .callouts.schema import CalloutComponentType, component_type
from .callouts.validator import validate_component
from .classifier import (
    extract_numbers,
    get_file_id,
    get_text,
    is_any_file,
    is_number,
    match_file_type,
)
from .conditions import (
    ReplayCondition,
    ReplayConditionAny,
    ReplayConditionCalloutComponentSchema,
    ReplayConditionFile,
    ReplayConditionNone,
    ReplayConditionSelection,
    ReplayConditionText,
)
from .logging import get_logger
from .model import (
    AcceptedFileType,
    ReplayAccepted,
    ReplayAcceptedAny,
    ReplayAcceptedCalloutComponent,
    ReplayAcceptedFile,
    ReplayAcceptedNone,
    ReplayAcceptedSelection,
    ReplayAcceptedText,
)
from .telegram.types import TelegramIncomingMessage
from .transform import parse_response_callout_component

logger = get_logger(__name__)

__all__ = ["UnknownConditionType", "evaluate"]


class UnknownConditionType(RuntimeError):
    pass


def _normalize(text: str | None) -> str:
    return (text or "").strip().lower()


def _matches(text: str, candidates: Iterable[str]) -> bool:
    return bool(text) and any(text == _normalize(c) for c in candidates)


def _rejected(event: TelegramIncomingMessage) -> ReplayAcceptedNone:
    return ReplayAcceptedNone(context=event)


def _evaluate_file(
    event: TelegramIncomingMessage, condition: ReplayConditionFile
) -> ReplayAccepted:
    message = event.message
    if not condition.mime_types:
        accepted = is_any_file(message)
        return ReplayAcceptedFile(
            accepted=accepted,
            context=event,
            is_done_message=accepted and not condition.multiple,
            file_id=get_file_id(message),
        )
    file_type = match_file_type(message, condition.mime_types)
    accepted = file_type is not AcceptedFileType.ANY
    return ReplayAcceptedFile(
        accepted=accepted,
        context=event,
        is_done_message=accepted and not condition.multiple,
        file_type=file_type,
        file_id=get_file_id(message),
    )


def _evaluate_text(
    event: TelegramIncomingMessage, condition: ReplayConditionText
) -> ReplayAccepted:
    original = get_text(event.message).strip()
    if not original:
        return _rejected(event)
    if condition.texts and not _matches(original.lower(), condition.texts):
        return _rejected(event)
    return ReplayAcceptedText(
        accepted=True,
        context=event,
        is_done_message=not condition.multiple,
        text=original,
    )


def _evaluate_selection(
    event: TelegramIncomingMessage, condition: ReplayConditionSelection
) -> ReplayAccepted:
    text = get_text(event.message).strip()
    keys = list(condition.value_label)
    value: str | None = None

    if is_number(text):
        number = extract_numbers(text)
        if number.is_integer() and 1 <= number <= len(keys):
            value = keys[int(number) - 1]
    if value is None:
        lowered = text.lower()
        value = next(
            (
                key
                for key, label in condition.value_label.items()
                if lowered and label.strip().lower() == lowered
            ),
            None,
        )

    accepted = value is not None
    return ReplayAcceptedSelection(
        accepted=accepted,
        context=event,
        is_done_message=accepted and not condition.multiple,
        value=value,
    )


def _evaluate_callout_component(
    event: TelegramIncomingMessage, condition: ReplayConditionCalloutComponentSchema
) -> ReplayAccepted:
    schema = condition.schema
    if component_type(schema) is CalloutComponentType.CONTENT:
        return _rejected(event)
    answer = parse_response_callout_component(event.message, schema)
    accepted = validate_component(schema, answer)
    return ReplayAcceptedCalloutComponent(
        accepted=accepted,
        context=event,
        is_done_message=accepted and not condition.multiple,
        answer=answer,
    )


def evaluate(
    event: TelegramIncomingMessage, condition: ReplayCondition
) -> ReplayAccepted:
    """Match ``event`` against ``condition``.

    A done sentinel wins over everything, then a skip sentinel for optional
    questions, then the condition's own rule. Missing message fields reject;
    only an unknown condition or an unsupported component type raises.
    """
    text = _normalize(get_text(event.message))

    if condition.multiple and condition.done_texts and _matches(text, condition.done_texts):
        logger.debug("evaluator.done", chat_id=event.chat_id, text=text)
        return ReplayAcceptedText(
            accepted=True,
            context=event,
            is_done_message=True,
            text=get_text(event.message).strip(),
        )

    if not condition.required and condition.skip_texts and _matches(text, condition.skip_texts):
        logger.debug("evaluator.skip", chat_id=event.chat_id, text=text)
        return ReplayAcceptedText(
            accepted=True,
            context=event,
            is_done_message=True,
            is_skip_message=True,
            text=get_text(event.message).strip(),
        )

    if isinstance(condition, ReplayConditionAny):
        return ReplayAcceptedAny(
            accepted=True, context=event, is_done_message=not condition.multiple
        )
    if isinstance(condition, ReplayConditionNone):
        return _rejected(event)
    if isinstance(condition, ReplayConditionFile):
        return _evaluate_file(event, condition)
    if isinstance(condition, ReplayConditionText):
        return _evaluate_text(event, condition)
    if isinstance(condition, ReplayConditionSelection):
        return _evaluate_selection(event, condition)
    if isinstance(condition, ReplayConditionCalloutComponentSchema):
        return _evaluate_callout_component(event, condition)

    raise UnknownConditionType(
        f"Unknown replay condition type: {getattr(condition, 'type', condition)!r}"
    )
