"""Telegram reply markup builders."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from .i18n import Translator

BUTTON_CALLBACK_SHOW_CALLOUT = "1"
BUTTON_CALLBACK_CALLOUT_INTRO = "2"
BUTTON_CALLBACK_CALLOUT_PARTICIPATE = "3"

# Telegram rejects callback data longer than this many bytes.
MAX_CALLBACK_DATA_BYTES = 64


def callback_data(*parts: str) -> str:
    data = ":".join(parts)
    if len(data.encode("utf-8")) > MAX_CALLBACK_DATA_BYTES:
        raise ValueError(f"callback data too long: {data!r}")
    return data


def inline_keyboard(rows: Iterable[Iterable[tuple[str, str]]]) -> dict[str, Any]:
    return {
        "inline_keyboard": [
            [{"text": label, "callback_data": data} for label, data in row]
            for row in rows
        ]
    }


def inline_yes_no(prefix: str, translator: Translator) -> dict[str, Any]:
    return inline_keyboard(
        [
            [
                (translator.t("bot.keyboard.label.no"), f"{prefix}:no"),
                (translator.t("bot.keyboard.label.yes"), f"{prefix}:yes"),
            ]
        ]
    )


def inline_continue_cancel(prefix: str, translator: Translator) -> dict[str, Any]:
    return inline_keyboard(
        [
            [
                (translator.t("bot.keyboard.label.cancel"), f"{prefix}:cancel"),
                (translator.t("bot.keyboard.label.continue"), f"{prefix}:continue"),
            ]
        ]
    )


def inline_callout_selection(slugs_and_titles: Sequence[tuple[str, str]]) -> dict[str, Any]:
    """One numbered button per callout, three per row."""
    buttons = [
        (str(index), callback_data(BUTTON_CALLBACK_SHOW_CALLOUT, slug))
        for index, (slug, _title) in enumerate(slugs_and_titles, start=1)
    ]
    rows = [buttons[i : i + 3] for i in range(0, len(buttons), 3)]
    return inline_keyboard(rows)


def reply_keyboard(
    labels: Iterable[str],
    *,
    extra: Iterable[str] = (),
    one_time: bool = True,
) -> dict[str, Any]:
    """Reply keyboard with one label per row and sentinel buttons last."""
    rows = [[{"text": label}] for label in labels]
    sentinels = [{"text": text} for text in extra]
    if sentinels:
        rows.append(sentinels)
    return {
        "keyboard": rows,
        "resize_keyboard": True,
        "one_time_keyboard": one_time,
    }


def remove_keyboard() -> dict[str, Any]:
    return {"remove_keyboard": True}


def empty_inline_keyboard() -> dict[str, Any]:
    return {"inline_keyboard": []}
