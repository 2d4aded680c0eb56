import pytest

from calloutbot.conditions import (
    ConditionFactory,
    IllegalConfiguration,
    replay_condition_any,
    replay_condition_file,
    replay_condition_none,
    replay_condition_selection,
    replay_condition_text,
)
from calloutbot.i18n import Translator
from calloutbot.model import ReplayType
from tests.factories import component


class TestPureFactories:
    def test_none_condition(self) -> None:
        condition = replay_condition_none()
        assert condition.type is ReplayType.NONE
        assert condition.multiple is False
        assert condition.done_texts == ()

    @pytest.mark.parametrize(
        "build",
        [
            lambda **kw: replay_condition_any(**kw),
            lambda **kw: replay_condition_text(**kw),
            lambda **kw: replay_condition_file(**kw),
            lambda **kw: replay_condition_selection({"a": "A"}, **kw),
        ],
    )
    def test_multiple_without_done_texts_is_rejected(self, build) -> None:
        with pytest.raises(IllegalConfiguration):
            build(multiple=True)
        with pytest.raises(IllegalConfiguration):
            build(multiple=True, done_texts=[])

    def test_multiple_with_done_texts_is_accepted(self) -> None:
        condition = replay_condition_text(multiple=True, done_texts=["done"])
        assert condition.multiple is True
        assert condition.done_texts == ("done",)

    def test_text_condition_keeps_whitelist(self) -> None:
        condition = replay_condition_text(texts=["yes", "no"])
        assert condition.type is ReplayType.TEXT
        assert condition.texts == ("yes", "no")

    def test_selection_mapping_is_read_only(self) -> None:
        condition = replay_condition_selection({"a": "Red"})
        with pytest.raises(TypeError):
            condition.value_label["b"] = "Blue"  # type: ignore[index]

    def test_conditions_are_frozen(self) -> None:
        condition = replay_condition_any()
        with pytest.raises(AttributeError):
            condition.multiple = True  # type: ignore[misc]


class TestConditionFactory:
    def test_multiple_gets_translated_done_text(self) -> None:
        factory = ConditionFactory(Translator())
        condition = factory.text(multiple=True, required=True)
        assert condition.done_texts == ("done",)
        assert condition.skip_texts == ()

    def test_optional_gets_translated_skip_text(self) -> None:
        factory = ConditionFactory(Translator({"bot.reactions.messages.skip": "weiter"}))
        condition = factory.any(required=False)
        assert condition.skip_texts == ("weiter",)
        assert condition.done_texts == ()

    def test_explicit_sentinels_win(self) -> None:
        factory = ConditionFactory(Translator())
        condition = factory.selection(
            {"a": "A"}, multiple=True, done_texts=["finish"], skip_texts=[]
        )
        assert condition.done_texts == ("finish",)
        assert condition.skip_texts == ()

    def test_file_pattern_expands_mime_types(self) -> None:
        factory = ConditionFactory(Translator())
        condition = factory.file_pattern("application/pdf, image/png", required=True)
        assert condition.type is ReplayType.FILE
        assert condition.mime_types == ("application/pdf", "image/png")

    def test_callout_component_carries_schema(self) -> None:
        factory = ConditionFactory(Translator())
        schema = component("email", "email", required=True)
        condition = factory.callout_component(schema, required=True)
        assert condition.type is ReplayType.CALLOUT_COMPONENT_SCHEMA
        assert condition.schema is schema
