import math

import msgspec
import pytest

from calloutbot.callouts.keys import create_group_key, is_group_key, split_group_key
from calloutbot.callouts.schema import CalloutComponentType, CalloutData, component_type
from calloutbot.callouts.validator import validate_component
from tests.factories import component


class TestGroupKeys:
    def test_create_and_split(self) -> None:
        key = create_group_key("name", "slide-1")
        assert key == "slide-1-slide:name"
        assert is_group_key(key)
        assert split_group_key(key) == ("slide-1", "name")

    def test_only_first_separator_splits(self) -> None:
        assert split_group_key("a-slide:b-slide:c") == ("a", "b-slide:c")

    @pytest.mark.parametrize("key", ["", None, "plain", "slide:x"])
    def test_not_a_group_key(self, key) -> None:
        assert not is_group_key(key)

    def test_split_rejects_plain_key(self) -> None:
        with pytest.raises(ValueError, match="Invalid group key"):
            split_group_key("plain")


class TestSchema:
    def test_decodes_content_api_payload(self) -> None:
        payload = {
            "slug": "parks",
            "title": "Our parks",
            "thanksTitle": "Thanks!",
            "formSchema": {
                "slides": [
                    {
                        "id": "s1",
                        "components": [
                            {
                                "key": "color",
                                "type": "selectboxes",
                                "filePattern": None,
                                "validate": {"required": True, "minLength": 2},
                                "values": [{"value": "r", "label": "Red"}],
                                "somethingNew": 1,
                            }
                        ],
                    }
                ]
            },
        }
        data = msgspec.convert(payload, CalloutData)
        assert data.thanks_title == "Thanks!"
        schema = data.form_schema.slides[0].components[0]
        assert schema.required is True
        assert schema.validate.min_length == 2
        assert schema.value_label() == {"r": "Red"}
        assert component_type(schema) is CalloutComponentType.INPUT_SELECTABLE_SELECTBOXES

    def test_unknown_type(self) -> None:
        assert component_type(component("x", "hologram")) is None


class TestValidator:
    def test_optional_empty_answer_passes(self) -> None:
        assert validate_component(component("name"), "")
        assert not validate_component(component("name", required=True), "  ")

    def test_text_length_and_pattern(self) -> None:
        schema = component("code", required=True, min_length=2, max_length=4, pattern="[A-Z]+")
        assert validate_component(schema, "AB")
        assert not validate_component(schema, "A")
        assert not validate_component(schema, "ABCDE")
        assert not validate_component(schema, "ab")

    def test_number(self) -> None:
        schema = component("age", "number", min=0, max=10)
        assert validate_component(schema, 3.0)
        assert not validate_component(schema, 11)
        assert not validate_component(schema, math.nan)
        assert not validate_component(schema, True)

    def test_url(self) -> None:
        schema = component("site", "url")
        assert validate_component(schema, "https://example.org")
        assert not validate_component(schema, "https://localhost")
        assert not validate_component(schema, "ftp://example.org")

    def test_checkbox(self) -> None:
        schema = component("agree", "checkbox", required=True)
        assert validate_component(schema, False)
        assert not validate_component(schema, "true")

    def test_file_and_address(self) -> None:
        assert validate_component(component("f", "file"), {"url": "abc"})
        assert not validate_component(component("f", "file"), {"name": "abc"})
        address = {"formatted_address": "Main Street 1", "geometry": {}}
        assert validate_component(component("where", "address"), address)

    def test_selection(self) -> None:
        radio = component("c", "radio", values={"r": "Red", "b": "Blue"})
        assert validate_component(radio, "r")
        assert not validate_component(radio, "Red")

        boxes = component("c", "selectboxes", required=True, values={"r": "Red", "b": "Blue"})
        assert validate_component(boxes, {"r": True, "b": False})
        assert not validate_component(boxes, {"r": False, "b": False})
        assert not validate_component(boxes, {"x": True})

    def test_content_is_always_valid_and_unknown_never(self) -> None:
        assert validate_component(component("intro", "content", required=True), None)
        assert not validate_component(component("x", "hologram"), "anything")
