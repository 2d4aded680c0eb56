"""Callout form structures as served by the content API."""

from __future__ import annotations

import enum

import msgspec

__all__ = [
    "CalloutComponentSchema",
    "CalloutComponentType",
    "CalloutData",
    "CalloutFormSchema",
    "CalloutSlideSchema",
    "ComponentValidation",
    "ComponentValue",
    "INPUT_TEXT_TYPES",
    "NESTABLE_TYPES",
    "SELECTABLE_TYPES",
    "component_type",
]


class CalloutComponentType(str, enum.Enum):
    CONTENT = "content"
    INPUT_ADDRESS = "address"
    INPUT_BUTTON = "button"
    INPUT_CHECKBOX = "checkbox"
    INPUT_CURRENCY = "currency"
    INPUT_DATE_TIME = "datetime"
    INPUT_EMAIL = "email"
    INPUT_FILE = "file"
    INPUT_NUMBER = "number"
    INPUT_PASSWORD = "password"
    INPUT_PHONE_NUMBER = "phoneNumber"
    INPUT_SIGNATURE = "signature"
    INPUT_TEXT_AREA = "textarea"
    INPUT_TEXT_FIELD = "textfield"
    INPUT_TIME = "time"
    INPUT_URL = "url"
    INPUT_SELECTABLE_RADIO = "radio"
    INPUT_SELECT = "select"
    INPUT_SELECTABLE_SELECTBOXES = "selectboxes"
    NESTABLE_PANEL = "panel"
    NESTABLE_TABS = "tabs"
    NESTABLE_WELL = "well"


INPUT_TEXT_TYPES = frozenset(
    {
        CalloutComponentType.INPUT_CURRENCY,
        CalloutComponentType.INPUT_DATE_TIME,
        CalloutComponentType.INPUT_EMAIL,
        CalloutComponentType.INPUT_PASSWORD,
        CalloutComponentType.INPUT_PHONE_NUMBER,
        CalloutComponentType.INPUT_TEXT_AREA,
        CalloutComponentType.INPUT_TEXT_FIELD,
        CalloutComponentType.INPUT_TIME,
    }
)

SELECTABLE_TYPES = frozenset(
    {
        CalloutComponentType.INPUT_SELECTABLE_RADIO,
        CalloutComponentType.INPUT_SELECT,
        CalloutComponentType.INPUT_SELECTABLE_SELECTBOXES,
    }
)

NESTABLE_TYPES = frozenset(
    {
        CalloutComponentType.NESTABLE_PANEL,
        CalloutComponentType.NESTABLE_TABS,
        CalloutComponentType.NESTABLE_WELL,
    }
)


class ComponentValidation(msgspec.Struct, forbid_unknown_fields=False, rename="camel"):
    required: bool = False
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    min: float | None = None
    max: float | None = None


class ComponentValue(msgspec.Struct, forbid_unknown_fields=False):
    value: str
    label: str


class ComponentData(msgspec.Struct, forbid_unknown_fields=False):
    values: list[ComponentValue] = msgspec.field(default_factory=list)


class CalloutComponentSchema(
    msgspec.Struct, forbid_unknown_fields=False, rename="camel"
):
    key: str
    type: str
    label: str | None = None
    description: str | None = None
    input: bool = True
    multiple: bool = False
    placeholder: str | None = None
    html: str | None = None
    file_pattern: str | None = None
    validate: ComponentValidation = msgspec.field(default_factory=ComponentValidation)
    values: list[ComponentValue] = msgspec.field(default_factory=list)
    data: ComponentData | None = None
    components: list["CalloutComponentSchema"] = msgspec.field(default_factory=list)

    @property
    def required(self) -> bool:
        return self.validate.required

    def value_label(self) -> dict[str, str]:
        """Selectable options in display order."""
        options = self.values
        if not options and self.data is not None:
            options = self.data.values
        return {option.value: option.label for option in options}


class CalloutSlideSchema(msgspec.Struct, forbid_unknown_fields=False):
    id: str
    title: str = ""
    components: list[CalloutComponentSchema] = msgspec.field(default_factory=list)


class CalloutFormSchema(msgspec.Struct, forbid_unknown_fields=False):
    slides: list[CalloutSlideSchema] = msgspec.field(default_factory=list)


class CalloutData(msgspec.Struct, forbid_unknown_fields=False, rename="camel"):
    slug: str
    title: str = ""
    excerpt: str = ""
    image: str | None = None
    intro: str | None = None
    thanks_title: str | None = None
    thanks_text: str | None = None
    status: str | None = None
    expires: str | None = None
    form_schema: CalloutFormSchema | None = None
    url: str | None = None


def component_type(schema: CalloutComponentSchema) -> CalloutComponentType | None:
    try:
        return CalloutComponentType(schema.type)
    except ValueError:
        return None
