"""
Growth log entries: one short observation about the child, tagged with one
of six developmental categories.
"""
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LogTag(str, Enum):
    EXPLORATION = "exploration"
    FOCUS = "focus"
    SELF_ASSERTION = "self-assertion"
    LANGUAGE = "language"
    SLEEP = "sleep"
    EATING = "eating"


TAGS: list[LogTag] = list(LogTag)

# Tag values written by the first generation of the app
LEGACY_TAG_NAMES = {
    "探索": LogTag.EXPLORATION,
    "集中": LogTag.FOCUS,
    "自己主張": LogTag.SELF_ASSERTION,
    "ことば": LogTag.LANGUAGE,
    "睡眠": LogTag.SLEEP,
    "食事": LogTag.EATING,
}


NOTE_MIN_LENGTH = 1
NOTE_MAX_LENGTH = 2000
PHOTO_LABEL_MAX_LENGTH = 100


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Naive timestamps are read as UTC so they sort against aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def generate_log_id() -> str:
    return str(uuid.uuid4())


class GrowthLog(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_log_id)
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    tag: LogTag
    note: str
    photo_label: Optional[str] = Field(default=None, alias="photoLabel")

    @field_validator("tag", mode="before")
    @classmethod
    def map_legacy_tag(cls, value):
        if isinstance(value, str) and not isinstance(value, LogTag):
            return LEGACY_TAG_NAMES.get(value, value)
        return value

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    def to_record(self) -> dict[str, Any]:
        """Serialize with the camelCase field names used on disk."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ValidationResult(BaseModel):
    valid: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


_OK = ValidationResult(valid=True)


def validate_note(note: str) -> ValidationResult:
    trimmed = note.strip()

    if len(trimmed) < NOTE_MIN_LENGTH:
        return ValidationResult(valid=False, error="Please enter a note")

    if len(trimmed) > NOTE_MAX_LENGTH:
        return ValidationResult(
            valid=False,
            error=f"Note must be {NOTE_MAX_LENGTH} characters or fewer",
        )

    return _OK


def validate_photo_label(label: str) -> ValidationResult:
    if len(label.strip()) > PHOTO_LABEL_MAX_LENGTH:
        return ValidationResult(
            valid=False,
            error=f"Photo label must be {PHOTO_LABEL_MAX_LENGTH} characters or fewer",
        )

    return _OK


def validate_log(log: Mapping[str, Any] | GrowthLog) -> ValidationResult:
    """
    Validate a complete or partial growth log.

    Checks run in a fixed order and stop at the first failure:
    note presence, note content, photo label, tag.
    """
    if isinstance(log, GrowthLog):
        log = log.model_dump()

    note = log.get("note")
    if not note:
        return ValidationResult(valid=False, error="Note is required")

    note_validation = validate_note(note)
    if not note_validation.valid:
        return note_validation

    photo_label = log.get("photo_label") or log.get("photoLabel")
    if photo_label:
        label_validation = validate_photo_label(photo_label)
        if not label_validation.valid:
            return label_validation

    tag = log.get("tag")
    if isinstance(tag, LogTag):
        tag = tag.value
    elif isinstance(tag, str):
        tag = LEGACY_TAG_NAMES.get(tag, tag)
        tag = tag.value if isinstance(tag, LogTag) else tag
    if not tag or tag not in {t.value for t in TAGS}:
        return ValidationResult(valid=False, error="Please choose a valid tag")

    return _OK
