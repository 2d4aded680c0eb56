"""Answer validation for single callout form components."""

from __future__ import annotations

import math
import re
from typing import Any
from urllib.parse import urlsplit

from ..logging import get_logger
from .schema import (
    INPUT_TEXT_TYPES,
    CalloutComponentSchema,
    CalloutComponentType,
    component_type,
)

logger = get_logger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _is_empty(answer: Any) -> bool:
    if answer is None:
        return True
    if isinstance(answer, str):
        return not answer.strip()
    if isinstance(answer, (list, dict)):
        return not answer
    return False


def _check_text(schema: CalloutComponentSchema, answer: Any) -> bool:
    if not isinstance(answer, str):
        return False
    rules = schema.validate
    if rules.min_length is not None and len(answer) < rules.min_length:
        return False
    if rules.max_length is not None and len(answer) > rules.max_length:
        return False
    if rules.pattern:
        try:
            if re.fullmatch(rules.pattern, answer) is None:
                return False
        except re.error:
            logger.warning(
                "validator.bad_pattern", key=schema.key, pattern=rules.pattern
            )
    return True


def _check_number(schema: CalloutComponentSchema, answer: Any) -> bool:
    if isinstance(answer, bool) or not isinstance(answer, (int, float)):
        return False
    if math.isnan(answer) or math.isinf(answer):
        return False
    rules = schema.validate
    if rules.min is not None and answer < rules.min:
        return False
    if rules.max is not None and answer > rules.max:
        return False
    return True


def _check_email(answer: Any) -> bool:
    return isinstance(answer, str) and EMAIL_RE.match(answer) is not None


def _check_url(answer: Any) -> bool:
    if not isinstance(answer, str):
        return False
    parts = urlsplit(answer)
    return parts.scheme in ("http", "https") and "." in parts.netloc


def _check_file(answer: Any) -> bool:
    return isinstance(answer, dict) and bool(answer.get("url"))


def _check_address(answer: Any) -> bool:
    if not isinstance(answer, dict):
        return False
    formatted = answer.get("formatted_address")
    return isinstance(formatted, str) and bool(formatted.strip())


def _check_selection(schema: CalloutComponentSchema, answer: Any) -> bool:
    options = schema.value_label()
    kind = component_type(schema)
    if kind is CalloutComponentType.INPUT_SELECTABLE_SELECTBOXES:
        if not isinstance(answer, dict):
            return False
        if any(key not in options or not isinstance(v, bool) for key, v in answer.items()):
            return False
        return not schema.required or any(answer.values())
    return isinstance(answer, str) and answer in options


def validate_component(schema: CalloutComponentSchema, answer: Any) -> bool:
    """True when ``answer`` is acceptable for ``schema``."""
    kind = component_type(schema)
    if kind is None:
        logger.warning("validator.unknown_type", key=schema.key, type=schema.type)
        return False
    if kind is CalloutComponentType.CONTENT:
        return True
    if _is_empty(answer):
        return not schema.required

    if kind is CalloutComponentType.INPUT_EMAIL:
        return _check_email(answer) and _check_text(schema, answer)
    if kind is CalloutComponentType.INPUT_URL:
        return _check_url(answer)
    if kind is CalloutComponentType.INPUT_NUMBER:
        return _check_number(schema, answer)
    if kind is CalloutComponentType.INPUT_CHECKBOX:
        return isinstance(answer, bool)
    if kind in (CalloutComponentType.INPUT_FILE, CalloutComponentType.INPUT_SIGNATURE):
        return _check_file(answer)
    if kind is CalloutComponentType.INPUT_ADDRESS:
        return _check_address(answer)
    if kind in (
        CalloutComponentType.INPUT_SELECTABLE_RADIO,
        CalloutComponentType.INPUT_SELECT,
        CalloutComponentType.INPUT_SELECTABLE_SELECTBOXES,
    ):
        return _check_selection(schema, answer)
    if kind in INPUT_TEXT_TYPES:
        return _check_text(schema, answer)

    # button and nestable components carry no answer of their own
    return False
