"""Composite ``<slide id>-slide:<component key>`` answer keys."""

from __future__ import annotations

GROUP_KEY_SEPARATOR = "-slide:"


def create_group_key(key: str, slide_id: str) -> str:
    return f"{slide_id}{GROUP_KEY_SEPARATOR}{key}"


def is_group_key(key: str | None) -> bool:
    return bool(key) and GROUP_KEY_SEPARATOR in key


def split_group_key(key: str) -> tuple[str, str]:
    """Return ``(slide_id, component_key)``.

    Only the first separator splits; later ones stay in the component key.
    """
    if not is_group_key(key):
        raise ValueError(f"Invalid group key: {key!r}")
    slide_id, component_key = key.split(GROUP_KEY_SEPARATOR, 1)
    return slide_id, component_key
