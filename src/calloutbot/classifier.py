"""Stateless predicates over inbound Telegram messages."""

from __future__ import annotations

import math
import mimetypes
import re
from collections.abc import Iterable

from .logging import get_logger
from .model import AcceptedFileType
from .telegram.api_models import Location, Message, PhotoSize, Venue

logger = get_logger(__name__)

_NON_NUMERIC_RE = re.compile(r"[^-\d.]")

PSEUDO_MIME_TYPES = ("location", "contact", "address")


def is_audio_file(message: Message) -> bool:
    return (
        message.audio is not None
        or message.voice is not None
        or _document_mime_startswith(message, "audio")
    )


def is_photo_file(message: Message) -> bool:
    return bool(message.photo) or _document_mime_startswith(message, "image")


def is_video_file(message: Message) -> bool:
    return (
        message.video is not None
        or message.animation is not None
        or _document_mime_startswith(message, "video")
    )


def is_document_file(message: Message) -> bool:
    return message.document is not None and bool(message.document.file_id)


def is_contact(message: Message) -> bool:
    return message.contact is not None


def is_location(message: Message) -> bool:
    return message.location is not None or (
        message.venue is not None and message.venue.location is not None
    )


def is_address(message: Message) -> bool:
    return message.venue is not None and bool(message.venue.address)


def is_any_file(message: Message) -> bool:
    return (
        is_photo_file(message)
        or is_document_file(message)
        or is_video_file(message)
        or is_audio_file(message)
    )


def _document_mime_startswith(message: Message, prefix: str) -> bool:
    document = message.document
    if document is None or not document.mime_type:
        return False
    return document.mime_type.startswith(prefix)


def is_number(value: object) -> bool:
    """True for finite numbers and strings that are entirely numeric."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return not math.isnan(value)
    if not isinstance(value, str):
        return False
    text = value.strip()
    if not text:
        return False
    try:
        number = float(text)
    except ValueError:
        return False
    return not math.isnan(number)


def extract_numbers(value: str | float | None) -> float:
    """Strip everything but digits, dots and minus signs, then parse.

    Returns NaN when nothing numeric is left.
    """
    if value is None:
        return math.nan
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    stripped = _NON_NUMERIC_RE.sub("", str(value))
    if not is_number(stripped):
        return math.nan
    return float(stripped)


def get_text(message: Message | None) -> str:
    if message is None:
        return ""
    return message.text or message.caption or ""


def _best_photo(photos: list[PhotoSize] | None) -> PhotoSize | None:
    if not photos:
        return None
    return max(
        photos,
        key=lambda item: item.file_size
        if item.file_size is not None
        else item.width * item.height,
    )


def get_file_id(message: Message | None) -> str | None:
    if message is None:
        return None
    best = _best_photo(message.photo)
    if best is not None:
        return best.file_id
    for media in (
        message.document,
        message.video,
        message.animation,
        message.audio,
        message.voice,
    ):
        if media is not None:
            return media.file_id
    return None


def get_location(message: Message | None) -> tuple[Location | None, Venue | None]:
    if message is None:
        return None, None
    venue = message.venue
    location = message.location
    if location is None and venue is not None:
        location = venue.location
    return location, venue


def simple_mime_type(mime_type: str) -> str:
    """Bucket a MIME type into image/video/audio/document or a pseudo type."""
    value = mime_type.strip().lower()
    if value in PSEUDO_MIME_TYPES:
        return value
    if value.startswith("image/"):
        return "image"
    if value.startswith("video/"):
        return "video"
    if value.startswith("audio/"):
        return "audio"
    return "document"


def simple_mime_types(mime_types: Iterable[str]) -> set[str]:
    return {simple_mime_type(mime_type) for mime_type in mime_types if mime_type.strip()}


_FILE_TYPE_CHECKS = (
    ("image", AcceptedFileType.PHOTO, is_photo_file),
    ("document", AcceptedFileType.DOCUMENT, is_document_file),
    ("video", AcceptedFileType.VIDEO, is_video_file),
    ("audio", AcceptedFileType.AUDIO, is_audio_file),
    ("location", AcceptedFileType.LOCATION, is_location),
    ("contact", AcceptedFileType.CONTACT, is_contact),
    ("address", AcceptedFileType.ADDRESS, is_address),
)


def match_file_type(message: Message, mime_types: Iterable[str]) -> AcceptedFileType:
    """First bucket the message satisfies, or ANY when none matched."""
    buckets = simple_mime_types(mime_types)
    for bucket, file_type, check in _FILE_TYPE_CHECKS:
        if bucket in buckets and check(message):
            return file_type
    return AcceptedFileType.ANY


def _known_mime_types() -> list[str]:
    if not mimetypes.inited:
        mimetypes.init()
    known = set(mimetypes.types_map.values()) | set(mimetypes.common_types.values())
    return sorted(known)


def filter_mime_types_by_pattern(pattern: str) -> list[str]:
    """Expand ``image/*`` and ``.pdf`` style patterns; keep explicit types as given."""
    pattern = pattern.strip().lower()
    if not pattern:
        return []
    if pattern.endswith("/*"):
        main_type = pattern.split("/", 1)[0]
        return [m for m in _known_mime_types() if m.startswith(f"{main_type}/")]
    if pattern.startswith("."):
        if not mimetypes.inited:
            mimetypes.init()
        guessed = mimetypes.types_map.get(pattern)
        return [guessed] if guessed else []
    return [pattern]


def filter_mime_types_by_patterns(file_pattern: str | None) -> list[str]:
    if not file_pattern:
        return []
    mime_types: list[str] = []
    for pattern in file_pattern.split(","):
        for mime_type in filter_mime_types_by_pattern(pattern):
            if mime_type not in mime_types:
                mime_types.append(mime_type)
    logger.debug("classifier.file_pattern", pattern=file_pattern, count=len(mime_types))
    return mime_types
