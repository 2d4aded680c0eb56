"""Turn callouts and their forms into chat renders."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from ..conditions import ConditionFactory
from ..i18n import Translator
from ..keyboard import (
    BUTTON_CALLBACK_CALLOUT_INTRO,
    BUTTON_CALLBACK_CALLOUT_PARTICIPATE,
    callback_data,
    inline_callout_selection,
    inline_continue_cancel,
    inline_yes_no,
    reply_keyboard,
)
from ..logging import get_logger
from ..model import ParsedResponseType
from ..render import Render, RenderHtml, RenderMarkdown, RenderPhoto, RenderText
from ..telegram.render import escape_markdown
from .keys import create_group_key
from .schema import (
    INPUT_TEXT_TYPES,
    NESTABLE_TYPES,
    CalloutComponentSchema,
    CalloutComponentType,
    CalloutData,
    component_type,
)

logger = get_logger(__name__)

_HINT_KEYS = {
    CalloutComponentType.INPUT_EMAIL: "bot.render.callout.hint.email",
    CalloutComponentType.INPUT_NUMBER: "bot.render.callout.hint.number",
    CalloutComponentType.INPUT_CURRENCY: "bot.render.callout.hint.currency",
    CalloutComponentType.INPUT_URL: "bot.render.callout.hint.url",
    CalloutComponentType.INPUT_ADDRESS: "bot.render.callout.hint.address",
    CalloutComponentType.INPUT_CHECKBOX: "bot.render.callout.hint.checkbox",
    CalloutComponentType.INPUT_FILE: "bot.render.callout.hint.file",
    CalloutComponentType.INPUT_SIGNATURE: "bot.render.callout.hint.signature",
}


def _italic(text: str) -> str:
    return f"_{escape_markdown(text)}_"


class CalloutRenderer:
    def __init__(
        self,
        translator: Translator,
        conditions: ConditionFactory,
        *,
        site_url: str = "",
    ) -> None:
        self._t = translator
        self._conditions = conditions
        self._site_url = site_url.rstrip("/")

    def callout_url(self, callout: CalloutData) -> str:
        return callout.url or f"{self._site_url}/callouts/{callout.slug}"

    def list_items(self, callouts: Sequence[CalloutData]) -> list[Render]:
        """Numbered callout list followed by one selection button per callout."""
        if not callouts:
            return [
                RenderText(
                    key="callout-list",
                    text=self._t.t("bot.response.messages.noActiveCallouts"),
                )
            ]
        lines = [f"*{escape_markdown(self._t.t('bot.render.callout.list.title'))}*", ""]
        for index, callout in enumerate(callouts, start=1):
            title = escape_markdown(callout.title or callout.slug)
            lines.append(f"{index}\\. [{title}]({self.callout_url(callout)})")
        selection = RenderText(
            key="callout-list-selection",
            text=self._t.t("bot.keyboard.message.select-detail-callout"),
            keyboard=inline_callout_selection(
                [(callout.slug, callout.title) for callout in callouts]
            ),
        )
        return [RenderMarkdown(key="callout-list", markdown="\n".join(lines)), selection]

    def details(self, callout: CalloutData) -> Render:
        parts = [f"*{escape_markdown(callout.title or callout.slug)}*"]
        if callout.excerpt:
            parts.append(escape_markdown(callout.excerpt))
        parts.append(escape_markdown(self._t.t("bot.response.messages.calloutStartResponse")))
        markdown = "\n\n".join(parts)
        keyboard = inline_yes_no(
            callback_data(BUTTON_CALLBACK_CALLOUT_INTRO, callout.slug), self._t
        )
        if callout.image:
            return RenderPhoto(
                key="callout-details",
                photo=callout.image,
                caption=markdown,
                keyboard=keyboard,
            )
        return RenderMarkdown(key="callout-details", markdown=markdown, keyboard=keyboard)

    def intro(self, callout: CalloutData) -> RenderHtml:
        html = callout.intro or ""
        start = self._t.t("bot.response.messages.calloutStartForm")
        return RenderHtml(
            key="callout-intro",
            html=f"{html}<p>{start}</p>" if html else f"<p>{start}</p>",
            keyboard=inline_continue_cancel(
                callback_data(BUTTON_CALLBACK_CALLOUT_PARTICIPATE, callout.slug), self._t
            ),
        )

    def thank_you(self, callout: CalloutData) -> Render:
        html = ""
        if callout.thanks_title:
            html += f"<b>{callout.thanks_title}</b>\n"
        if callout.thanks_text:
            html += callout.thanks_text
        if not html:
            return RenderText(
                key="callout-thanks", text=self._t.t("bot.response.messages.thanks")
            )
        return RenderHtml(key="callout-thanks", html=html, remove_keyboard=True)

    def form(self, callout: CalloutData) -> list[Render]:
        """One render per component, keyed ``<slide>-slide:<component>``."""
        if callout.form_schema is None:
            return []
        renders: list[Render] = []
        for slide in callout.form_schema.slides:
            for component in _flatten(slide.components):
                render = self.component(component, slide.id)
                if render is not None:
                    renders.append(render)
        return renders

    def component(self, schema: CalloutComponentSchema, slide_id: str) -> Render | None:
        kind = component_type(schema)
        key = create_group_key(schema.key, slide_id)
        if kind is CalloutComponentType.CONTENT:
            html = schema.html or schema.label
            return RenderHtml(key=key, html=html) if html else None
        if kind is CalloutComponentType.INPUT_BUTTON:
            logger.debug("callout.render.skip", key=schema.key, type=schema.type)
            return None
        if kind is None:
            logger.warning("callout.render.unknown", key=schema.key, type=schema.type)
            return RenderMarkdown(
                key=key,
                markdown=escape_markdown(f"Unknown component type {schema.type}"),
            )

        lines = self._heading(schema)
        required = schema.required
        if kind in (
            CalloutComponentType.INPUT_SELECTABLE_RADIO,
            CalloutComponentType.INPUT_SELECT,
            CalloutComponentType.INPUT_SELECTABLE_SELECTBOXES,
        ):
            multiple = kind is CalloutComponentType.INPUT_SELECTABLE_SELECTBOXES
            value_label = schema.value_label()
            accepted = self._conditions.selection(
                value_label, multiple=multiple, required=required
            )
            parse_type = (
                ParsedResponseType.MULTI_SELECT if multiple else ParsedResponseType.SELECTION
            )
            lines.append(_italic(self._t.t("bot.render.callout.hint.selection")))
            lines.extend(
                f"*{escape_markdown(f'{n}. {label}')}*"
                for n, label in enumerate(value_label.values(), start=1)
            )
            labels: Sequence[str] = list(value_label.values())
        elif kind in (CalloutComponentType.INPUT_FILE, CalloutComponentType.INPUT_SIGNATURE):
            multiple = schema.multiple
            pattern = (
                "image/*"
                if kind is CalloutComponentType.INPUT_SIGNATURE
                else schema.file_pattern
            )
            accepted = self._conditions.file_pattern(
                pattern, multiple=multiple, required=required
            )
            parse_type = ParsedResponseType.FILE
            lines.append(_italic(self._t.t(_HINT_KEYS[kind])))
            labels = ()
        else:
            multiple = schema.multiple
            accepted = self._conditions.callout_component(
                schema, multiple=multiple, required=required
            )
            parse_type = ParsedResponseType.CALLOUT_COMPONENT
            if kind in _HINT_KEYS:
                lines.append(_italic(self._t.t(_HINT_KEYS[kind])))
            labels = ["true", "false"] if kind is CalloutComponentType.INPUT_CHECKBOX else ()

        if schema.placeholder and (kind in INPUT_TEXT_TYPES or kind in _HINT_KEYS):
            lines.append(
                _italic(
                    self._t.t(
                        "bot.render.callout.hint.placeholder",
                        {"placeholder": schema.placeholder},
                    )
                )
            )
        if multiple:
            lines.append(_italic(self._t.t("bot.render.callout.hint.multiple")))
        for done in accepted.done_texts[:1]:
            lines.append(_italic(self._t.t("bot.info.messages.done", {"done": done})))
        for skip in accepted.skip_texts[:1]:
            lines.append(_italic(self._t.t("bot.info.messages.skip", {"skip": skip})))

        sentinels = [*accepted.done_texts[:1], *accepted.skip_texts[:1]]
        keyboard = (
            reply_keyboard(labels, extra=sentinels, one_time=not multiple)
            if labels or sentinels
            else None
        )
        return RenderMarkdown(
            key=key,
            markdown="\n\n".join(lines),
            accepted=accepted,
            parse_type=parse_type,
            keyboard=keyboard,
            remove_keyboard=keyboard is None,
        )

    def _heading(self, schema: CalloutComponentSchema) -> list[str]:
        lines = []
        if schema.label:
            lines.append(f"*{escape_markdown(schema.label)}*")
        if schema.description:
            lines.append(escape_markdown(schema.description))
        return lines


def _flatten(components: Sequence[CalloutComponentSchema]) -> Iterator[CalloutComponentSchema]:
    for component in components:
        if component_type(component) in NESTABLE_TYPES:
            yield from _flatten(component.components)
        else:
            yield component
