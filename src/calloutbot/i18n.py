from __future__ import annotations

from collections.abc import Mapping

from .logging import get_logger

logger = get_logger(__name__)

EN: dict[str, str] = {
    "bot.commands.start.description": "Start the bot",
    "bot.commands.help.description": "Show the available commands",
    "bot.commands.list.description": "List the active callouts",
    "bot.commands.cancel.description": "Cancel the current action",
    "bot.commands.reset.description": "Reset the conversation",
    "bot.info.messages.welcome": "Hi! Welcome to {bot_name}.",
    "bot.info.messages.intro": (
        "I can show you the active callouts of {bot_name} and collect your "
        "answers.\n\n{commands}"
    ),
    "bot.info.messages.commands": "Available commands:",
    "bot.info.messages.done": 'Send "{done}" when you are finished.',
    "bot.info.messages.skip": 'Send "{skip}" to skip this question.',
    "bot.info.messages.cancel.successful": "The current action was cancelled.",
    "bot.info.messages.cancel.unsuccessful": "There is nothing to cancel.",
    "bot.info.messages.cancel.cancelled": "The current action was already cancelled.",
    "bot.info.messages.reset.successful": "The running action was cancelled and the conversation was reset.",
    "bot.info.messages.reset.unsuccessful": "The conversation was reset.",
    "bot.info.messages.reset.cancelled": "The action was already cancelled, the conversation was reset.",
    "bot.info.messages.error": "Something went wrong, please try again.",
    "bot.info.messages.command.notUsable": "The command {command} cannot be used right now.",
    "bot.reactions.messages.done": "done",
    "bot.reactions.messages.skip": "skip",
    "bot.keyboard.label.yes": "Yes",
    "bot.keyboard.label.no": "No",
    "bot.keyboard.label.continue": "Continue",
    "bot.keyboard.label.cancel": "Cancel",
    "bot.keyboard.message.select-detail-callout": "Select a callout to see the details.",
    "bot.render.callout.list.title": "Active callouts",
    "bot.render.callout.hint.email": "Please enter an email.",
    "bot.render.callout.hint.number": "Please enter a number.",
    "bot.render.callout.hint.currency": "Please enter an amount of money.",
    "bot.render.callout.hint.url": "Please enter a URL.",
    "bot.render.callout.hint.address": "Please send a location or type the address.",
    "bot.render.callout.hint.checkbox": 'Please answer with "true" or "false".',
    "bot.render.callout.hint.file": "Please upload the file here.",
    "bot.render.callout.hint.signature": "Please upload your signature as an image.",
    "bot.render.callout.hint.selection": "Please choose one of the following options:",
    "bot.render.callout.hint.multiple": "You can send more than one answer.",
    "bot.render.callout.hint.placeholder": "Example: {placeholder}",
    "bot.response.messages.stop": "Okay, maybe another time.",
    "bot.response.messages.thanks": "Thank you, your answers were saved.",
    "bot.response.messages.responseFailed": "Your answers could not be saved.",
    "bot.response.messages.calloutNotFound": "This callout could not be found.",
    "bot.response.messages.calloutStartResponse": "Would you like to answer this callout?",
    "bot.response.messages.calloutStartForm": "Ready to start the questions?",
    "bot.response.messages.noActiveCallouts": "There are no active callouts right now.",
    "bot.response.messages.notATextMessage": "Please answer with a text message.",
    "bot.response.messages.notATextMessageWithAllowed": (
        "Please answer with one of the following: {allowed}."
    ),
    "bot.response.messages.notASelectionMessage": (
        "Please choose one of the options by number or by its label."
    ),
    "bot.response.messages.notAFileMessage": "Please send a file.",
    "bot.response.messages.notTheRightFileType": "Please send a file of type {type}.",
    "bot.response.messages.notACalloutComponent": "This is not a valid {type}.",
    "bot.response.messages.notACalloutComponent.email": "Please enter a valid email address.",
    "bot.response.messages.notACalloutComponent.number": "Please enter a valid number.",
    "bot.response.messages.notACalloutComponent.url": "Please enter a valid URL.",
    "bot.response.messages.notACalloutComponent.address": "Please send an address or a location.",
    "bot.response.messages.notACalloutComponent.file": "Please send a file.",
    "bot.response.messages.notACalloutComponent.checkbox": (
        'Please answer with "true" or "false".'
    ),
    "bot.universal.or": "or",
}


class _Placeholders(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


class Translator:
    """Looks up UI strings; unknown keys are returned unchanged."""

    def __init__(
        self,
        overrides: Mapping[str, str] | None = None,
        *,
        catalogue: Mapping[str, str] = EN,
    ) -> None:
        self._strings = {**catalogue, **(overrides or {})}

    def update(self, overrides: Mapping[str, str]) -> None:
        self._strings.update(overrides)

    def has(self, key: str) -> bool:
        return key in self._strings

    def t(self, key: str, placeholders: Mapping[str, object] | None = None) -> str:
        template = self._strings.get(key)
        if template is None:
            logger.debug("i18n.missing", key=key)
            return key
        if not placeholders:
            return template
        values = _Placeholders({k: str(v) for k, v in placeholders.items()})
        return template.format_map(values)
