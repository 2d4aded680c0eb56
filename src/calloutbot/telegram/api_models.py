from __future__ import annotations

import msgspec

__all__ = [
    "Animation",
    "Audio",
    "CallbackQuery",
    "Chat",
    "Contact",
    "Document",
    "Location",
    "Message",
    "PhotoSize",
    "Update",
    "User",
    "Venue",
    "Video",
    "Voice",
    "decode_update",
]


class User(msgspec.Struct, forbid_unknown_fields=False):
    id: int
    is_bot: bool | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    language_code: str | None = None


class Chat(msgspec.Struct, forbid_unknown_fields=False):
    id: int
    type: str


class PhotoSize(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    width: int
    height: int
    file_size: int | None = None


class Document(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    file_name: str | None = None
    mime_type: str | None = None
    file_size: int | None = None


class Audio(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    duration: int | None = None
    mime_type: str | None = None
    file_size: int | None = None


class Voice(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    duration: int | None = None
    mime_type: str | None = None
    file_size: int | None = None


class Video(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    width: int | None = None
    height: int | None = None
    duration: int | None = None
    mime_type: str | None = None
    file_size: int | None = None


class Animation(msgspec.Struct, forbid_unknown_fields=False):
    file_id: str
    mime_type: str | None = None
    file_size: int | None = None


class Location(msgspec.Struct, forbid_unknown_fields=False):
    latitude: float
    longitude: float


class Venue(msgspec.Struct, forbid_unknown_fields=False):
    location: Location | None = None
    title: str | None = None
    address: str | None = None


class Contact(msgspec.Struct, forbid_unknown_fields=False):
    phone_number: str
    first_name: str | None = None
    last_name: str | None = None
    user_id: int | None = None


class Message(msgspec.Struct, forbid_unknown_fields=False):
    message_id: int
    chat: Chat | None = None
    from_: User | None = msgspec.field(default=None, name="from")
    date: int | None = None
    text: str | None = None
    caption: str | None = None
    photo: list[PhotoSize] | None = None
    document: Document | None = None
    audio: Audio | None = None
    voice: Voice | None = None
    video: Video | None = None
    animation: Animation | None = None
    location: Location | None = None
    venue: Venue | None = None
    contact: Contact | None = None


class CallbackQuery(msgspec.Struct, forbid_unknown_fields=False):
    id: str
    from_: User | None = msgspec.field(default=None, name="from")
    message: Message | None = None
    data: str | None = None


class Update(msgspec.Struct, forbid_unknown_fields=False):
    update_id: int
    message: Message | None = None
    callback_query: CallbackQuery | None = None


def decode_update(raw: bytes | str) -> Update:
    return msgspec.json.decode(raw, type=Update)
