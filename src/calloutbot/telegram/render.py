from __future__ import annotations

import re
from typing import Any

from markdown_it import MarkdownIt
from sulguk import transform_html

_MD_RENDERER = MarkdownIt("commonmark", {"html": False})
_BULLET_RE = re.compile(r"(?m)^(\s*)•")
_MD_SPECIAL_RE = re.compile(r"([\\`*_{}\[\]()#+\-.!|>~<])")

MAX_TEXT_LEN = 4096
MAX_CAPTION_LEN = 1024


def escape_markdown(text: str) -> str:
    """Backslash-escape CommonMark punctuation in user supplied text."""
    return _MD_SPECIAL_RE.sub(r"\\\1", text or "")


def render_markdown(md: str) -> tuple[str, list[dict[str, Any]]]:
    """Render CommonMark into Telegram text plus message entities."""
    html = _MD_RENDERER.render(md or "")
    rendered = transform_html(html)

    text = _BULLET_RE.sub(r"\1-", rendered.text).rstrip()

    entities = [dict(e) for e in rendered.entities]
    return text, entities


def render_html(html: str) -> tuple[str, list[dict[str, Any]]]:
    """Convert an HTML fragment into Telegram text plus message entities."""
    rendered = transform_html(html or "")
    return rendered.text.rstrip(), [dict(e) for e in rendered.entities]


def trim_text(text: str, limit: int = MAX_TEXT_LEN) -> str:
    if len(text) > limit:
        return text[: limit - 1] + "…"
    return text
