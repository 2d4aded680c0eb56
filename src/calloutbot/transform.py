"""Turn accepted replies into typed answers and callout answer maps."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .callouts.keys import is_group_key, split_group_key
from .callouts.schema import (
    INPUT_TEXT_TYPES,
    NESTABLE_TYPES,
    SELECTABLE_TYPES,
    CalloutComponentSchema,
    CalloutComponentType,
    component_type,
)
from .classifier import extract_numbers, get_file_id, get_location, get_text
from .conditions import ReplayConditionSelection
from .logging import get_logger
from .model import (
    ParsedResponseType,
    RenderResponseParsed,
    ReplayAccepted,
    ReplayAcceptedCalloutComponent,
    ReplayAcceptedSelection,
)
from .render import Render, RenderResponse
from .telegram.api_models import Message

logger = get_logger(__name__)

AnswerMap = dict[str, dict[str, Any]]


def _message(replay: ReplayAccepted) -> Message | None:
    context = replay.context
    return context.message if context is not None else None


def parse_response_text(message: Message | None) -> str:
    return get_text(message).strip()


def parse_response_number(message: Message | None) -> float:
    return extract_numbers(get_text(message).strip())


def parse_response_boolean(message: Message | None) -> bool:
    value = get_text(message).strip().lower()
    if value == "true":
        return True
    if value != "false":
        logger.warning("transform.unknown_boolean", value=value)
    return False


def parse_response_file(message: Message | None) -> dict[str, str] | None:
    file_id = get_file_id(message)
    if not file_id:
        return None
    # TODO: upload to the content API and store its URL instead of the file id
    return {"url": file_id}


def parse_response_address(message: Message | None) -> dict[str, Any]:
    """Venue address, then plain text, then venue title.

    Missing coordinates are reported as ``0``.
    """
    location, venue = get_location(message)
    formatted = (
        (venue.address if venue is not None else None)
        or parse_response_text(message)
        or (venue.title if venue is not None else None)
        or ""
    )
    return {
        "formatted_address": formatted,
        "geometry": {
            "location": {
                "lat": location.latitude if location is not None else 0,
                "lng": location.longitude if location is not None else 0,
            }
        },
    }


def parse_response_url(message: Message | None) -> str:
    text = parse_response_text(message)
    if text and not text.lower().startswith(("http://", "https://")):
        text = f"https://{text}"
    return text


def parse_response_any(message: Message | None) -> str | dict[str, str] | None:
    return parse_response_text(message) or parse_response_file(message)


def parse_response_selection(
    replay: ReplayAccepted,
    value_label: Mapping[str, str],
    *,
    other_false: bool = True,
) -> dict[str, bool]:
    """Selected value mapped to ``True``; the rest ``False`` when ``other_false``."""
    result: dict[str, bool] = {}
    if not replay.is_skip_message:
        if not isinstance(replay, ReplayAcceptedSelection):
            raise TypeError(
                f"Unsupported accepted type for selection: {replay.type.value!r}"
            )
        if replay.value:
            result[replay.value] = True
    if other_false:
        for value in value_label:
            result.setdefault(value, False)
    return result


def parse_response_callout_component(
    message: Message | None, schema: CalloutComponentSchema
) -> Any:
    """Parse a reply the way the component stores its answer.

    Raises ``NotImplementedError`` for selectable, nestable and button
    components.
    """
    kind = component_type(schema)
    if kind is CalloutComponentType.INPUT_CHECKBOX:
        return parse_response_boolean(message)
    if kind in (CalloutComponentType.INPUT_FILE, CalloutComponentType.INPUT_SIGNATURE):
        return parse_response_file(message)
    if kind is CalloutComponentType.INPUT_ADDRESS:
        return parse_response_address(message)
    if kind is CalloutComponentType.INPUT_URL:
        return parse_response_url(message)
    if kind is CalloutComponentType.INPUT_NUMBER:
        return parse_response_number(message)
    if kind in INPUT_TEXT_TYPES:
        return parse_response_text(message)
    if kind in SELECTABLE_TYPES or kind in NESTABLE_TYPES:
        raise NotImplementedError(f"{schema.type} components are not supported")
    if kind is CalloutComponentType.INPUT_BUTTON:
        raise NotImplementedError("button components are not supported")
    raise NotImplementedError(f"Unknown callout component type {schema.type!r}")


def parse_response(replay: ReplayAccepted, render: Render) -> Any:
    if replay.is_skip_message:
        return None

    parse_type = render.parse_type
    message = _message(replay)
    if parse_type is ParsedResponseType.CALLOUT_COMPONENT:
        if not isinstance(replay, ReplayAcceptedCalloutComponent):
            raise TypeError(
                f"Unsupported accepted type for callout component: {replay.type.value!r}"
            )
        return replay.answer
    if parse_type is ParsedResponseType.FILE:
        return parse_response_file(message)
    if parse_type is ParsedResponseType.TEXT:
        return parse_response_text(message)
    if parse_type in (ParsedResponseType.SELECTION, ParsedResponseType.MULTI_SELECT):
        condition = render.accepted
        if not isinstance(condition, ReplayConditionSelection):
            raise TypeError(
                f"Unsupported condition type for selection: {condition.type.value!r}"
            )
        if parse_type is ParsedResponseType.SELECTION:
            return replay.value if isinstance(replay, ReplayAcceptedSelection) else None
        return parse_response_selection(replay, condition.value_label)
    if parse_type is ParsedResponseType.BOOLEAN:
        return parse_response_boolean(message)
    if parse_type is ParsedResponseType.NUMBER:
        return parse_response_number(message)
    if parse_type is ParsedResponseType.ADDRESS:
        return parse_response_address(message)
    if parse_type is ParsedResponseType.ANY:
        return parse_response_any(message)
    if parse_type is ParsedResponseType.NONE:
        return None
    raise ValueError(f"Unknown parse response type: {parse_type!r}")


def _with_text(replays: Iterable[ReplayAccepted]) -> list[ReplayAccepted]:
    return [replay for replay in replays if get_text(_message(replay)).strip()]


def parse_responses(replays: Sequence[ReplayAccepted], render: Render) -> Any:
    """Plural form of :func:`parse_response` for multi reply questions."""
    if any(replay.is_skip_message for replay in replays):
        return None

    parse_type = render.parse_type
    if parse_type is ParsedResponseType.CALLOUT_COMPONENT:
        return [parse_response(replay, render) for replay in replays]
    if parse_type in (ParsedResponseType.FILE, ParsedResponseType.ADDRESS):
        return [parse_response(replay, render) for replay in replays]
    if parse_type is ParsedResponseType.MULTI_SELECT:
        condition = render.accepted
        if not isinstance(condition, ReplayConditionSelection):
            raise TypeError(
                f"Unsupported condition type for selection: {condition.type.value!r}"
            )
        result: dict[str, bool] = {}
        for replay in replays:
            result.update(
                parse_response_selection(replay, condition.value_label, other_false=False)
            )
        for value in condition.value_label:
            result.setdefault(value, False)
        return result
    if parse_type in (
        ParsedResponseType.TEXT,
        ParsedResponseType.SELECTION,
        ParsedResponseType.BOOLEAN,
        ParsedResponseType.NUMBER,
        ParsedResponseType.ANY,
    ):
        return [parse_response(replay, render) for replay in _with_text(replays)]
    if parse_type is ParsedResponseType.NONE:
        return None
    raise ValueError(f"Unknown parse response type: {parse_type!r}")


def to_render_response(render: Render, replays: Sequence[ReplayAccepted]) -> RenderResponse:
    """Shape the replies collected for ``render``."""
    multiple = render.accepted.multiple
    if render.parse_type is ParsedResponseType.NONE or not replays:
        data = None
    elif multiple:
        data = parse_responses(replays, render)
    else:
        data = parse_response(replays[-1], render)
    return RenderResponse(
        render=render,
        responses=RenderResponseParsed(
            type=render.parse_type,
            multiple=multiple,
            data=data,
            replay=list(replays) if multiple else (replays[-1] if replays else None),
        ),
    )


def group_by_group_key(
    responses: Iterable[RenderResponse],
) -> dict[str, list[tuple[str, RenderResponse]]]:
    slides: dict[str, list[tuple[str, RenderResponse]]] = {}
    for response in responses:
        if response.render.parse_type is ParsedResponseType.NONE:
            continue
        key = response.render.key
        if not is_group_key(key):
            logger.warning("transform.not_a_group_key", key=key)
            continue
        slide_id, component_key = split_group_key(key)
        slides.setdefault(slide_id, []).append((component_key, response))
    return slides


def parse_callout_form_responses(responses: Iterable[RenderResponse]) -> AnswerMap:
    """Nest per component answers as ``{slide_id: {component_key: answer}}``.

    A component key seen twice in one slide keeps the last answer.
    """
    answers: AnswerMap = {}
    for slide_id, items in group_by_group_key(responses).items():
        slide_answers: dict[str, Any] = {}
        for component_key, response in items:
            parsed = response.responses
            slide_answers[component_key] = (
                None if parsed.type is ParsedResponseType.NONE else parsed.data
            )
        answers[slide_id] = slide_answers
    return answers
