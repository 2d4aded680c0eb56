"""Informational and error messages sent to the chat."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from .callouts.schema import CalloutComponentSchema
from .classifier import simple_mime_types
from .conditions import (
    ReplayCondition,
    ReplayConditionCalloutComponentSchema,
    ReplayConditionFile,
    ReplayConditionSelection,
    ReplayConditionText,
)
from .i18n import Translator
from .keyboard import remove_keyboard
from .model import ReplayAccepted
from .render import RenderMarkdown, RenderText
from .session import ChatState
from .telegram.render import escape_markdown

_LAST_COMMA_RE = re.compile(r", ([^,]*)$")


class MessageRenderer:
    def __init__(self, translator: Translator, *, bot_name: str = "calloutbot") -> None:
        self._t = translator
        self.bot_name = bot_name

    def _text(self, key: str, placeholders: dict[str, object] | None = None) -> RenderText:
        return RenderText(key=key, text=self._t.t(key, placeholders))

    def welcome(self) -> RenderMarkdown:
        key = "bot.info.messages.welcome"
        text = escape_markdown(self._t.t(key, {"bot_name": self.bot_name}))
        return RenderMarkdown(
            key=key,
            markdown=f"*{text}*",
            keyboard=remove_keyboard(),
            remove_keyboard=True,
        )

    def commands(self, commands: Iterable[tuple[str, str]]) -> RenderMarkdown:
        lines = [f"*{escape_markdown(self._t.t('bot.info.messages.commands'))}*", ""]
        for name, description in commands:
            lines.append(f"- /{escape_markdown(name)}: _{escape_markdown(description)}_")
        return RenderMarkdown(key="commands", markdown="\n".join(lines))

    def intro(self, commands: Iterable[tuple[str, str]]) -> RenderMarkdown:
        key = "bot.info.messages.intro"
        listing = self.commands(commands).markdown
        text = self._t.t(key, {"bot_name": escape_markdown(self.bot_name), "commands": listing})
        return RenderMarkdown(key=key, markdown=text)

    def command_not_usable(self, command: str, state: ChatState) -> RenderText:
        return self._text(
            "bot.info.messages.command.notUsable",
            {"command": f"/{command}", "state": state.value},
        )

    def stop(self) -> RenderText:
        return self._text("bot.response.messages.stop")

    def callout_not_found(self) -> RenderText:
        return self._text("bot.response.messages.calloutNotFound")

    def thanks(self) -> RenderText:
        return self._text("bot.response.messages.thanks")

    def response_failed(self) -> RenderText:
        return self._text("bot.response.messages.responseFailed")

    def error(self) -> RenderText:
        return self._text("bot.info.messages.error")

    def cancel_message(self, cancelled: bool) -> RenderText:
        if cancelled:
            return self._text("bot.info.messages.cancel.successful")
        return self._text("bot.info.messages.cancel.unsuccessful")

    def cancel_cancelled_message(self) -> RenderText:
        return self._text("bot.info.messages.cancel.cancelled")

    def reset_successful_message(self) -> RenderText:
        return self._text("bot.info.messages.reset.successful")

    def reset_unsuccessful_message(self) -> RenderText:
        return self._text("bot.info.messages.reset.unsuccessful")

    def reset_cancelled_message(self) -> RenderText:
        return self._text("bot.info.messages.reset.cancelled")

    def not_a_text_message(self, texts: Sequence[str] | None = None) -> RenderText:
        if texts:
            return self._text(
                "bot.response.messages.notATextMessageWithAllowed",
                {"allowed": ", ".join(texts)},
            )
        return self._text("bot.response.messages.notATextMessage")

    def not_a_selection_message(self) -> RenderText:
        return self._text("bot.response.messages.notASelectionMessage")

    def not_a_file_message(self) -> RenderText:
        return self._text("bot.response.messages.notAFileMessage")

    def not_the_right_file_type(self, mime_types: Iterable[str]) -> RenderText:
        kinds = ", ".join(sorted(simple_mime_types(mime_types)))
        kinds = _LAST_COMMA_RE.sub(rf" {self._t.t('bot.universal.or')} \1", kinds)
        return self._text("bot.response.messages.notTheRightFileType", {"type": kinds})

    def not_a_callout_component_message(self, schema: CalloutComponentSchema) -> RenderText:
        key = f"bot.response.messages.notACalloutComponent.{schema.type}"
        if not self._t.has(key):
            key = "bot.response.messages.notACalloutComponent"
        return self._text(key, {"type": schema.type})

    def not_accepted_message(
        self, accepted: ReplayAccepted, condition: ReplayCondition
    ) -> RenderText | None:
        """The hint for a rejected reply, chosen by the condition type.

        ``None`` for conditions that have nothing to explain.
        """
        if accepted.accepted:
            raise ValueError("reply was accepted")
        if isinstance(condition, ReplayConditionText):
            return self.not_a_text_message(condition.texts)
        if isinstance(condition, ReplayConditionSelection):
            return self.not_a_selection_message()
        if isinstance(condition, ReplayConditionFile):
            if condition.mime_types:
                return self.not_the_right_file_type(condition.mime_types)
            return self.not_a_file_message()
        if isinstance(condition, ReplayConditionCalloutComponentSchema):
            return self.not_a_callout_component_message(condition.schema)
        return None
