"""
Quick-tap event log: sleep, diaper and feeding events.

QuickLog is a discriminated union on ``type``; each variant is its own model
so consumers can match on the concrete class.
"""
import random
import string
import time
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from growthlens.domain.log import ensure_aware, utc_now


class QuickLogType(str, Enum):
    SLEEP = "sleep"
    DIAPER = "diaper"
    FEEDING = "feeding"


class SleepAction(str, Enum):
    SLEPT = "slept"
    WOKE = "woke"


class DiaperType(str, Enum):
    PEE = "pee"
    POOP = "poop"
    BOTH = "both"


class FeedingType(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    FORMULA = "formula"


# Values written by the first generation of the app
LEGACY_VALUES: dict[str, Enum] = {
    "寝た": SleepAction.SLEPT,
    "起きた": SleepAction.WOKE,
    "おしっこ": DiaperType.PEE,
    "うんち": DiaperType.POOP,
    "両方": DiaperType.BOTH,
    "左": FeedingType.LEFT,
    "右": FeedingType.RIGHT,
    "ミルク": FeedingType.FORMULA,
}


def _map_legacy(value):
    if isinstance(value, str) and not isinstance(value, Enum):
        return LEGACY_VALUES.get(value, value)
    return value


class _QuickLogBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: generate_quick_log_id())
    timestamp: datetime = Field(default_factory=utc_now)
    note: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    def to_record(self) -> dict[str, Any]:
        """Serialize with the camelCase field names used on disk."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SleepLog(_QuickLogBase):
    type: Literal["sleep"] = "sleep"
    action: SleepAction
    duration: Optional[int] = Field(default=None, ge=0, description="Milliseconds, woke events only")

    @field_validator("action", mode="before")
    @classmethod
    def map_legacy_action(cls, value):
        return _map_legacy(value)

    @model_validator(mode="after")
    def check_duration_only_on_wake(self):
        if self.action == SleepAction.SLEPT and self.duration is not None:
            raise ValueError("duration is only recorded on woke events")
        return self


class DiaperLog(_QuickLogBase):
    type: Literal["diaper"] = "diaper"
    diaper_type: DiaperType = Field(alias="diaperType")

    @field_validator("diaper_type", mode="before")
    @classmethod
    def map_legacy_diaper_type(cls, value):
        return _map_legacy(value)


class FeedingLog(_QuickLogBase):
    type: Literal["feeding"] = "feeding"
    feeding_type: FeedingType = Field(alias="feedingType")
    duration: Optional[int] = Field(default=None, ge=0, description="Minutes")
    amount: Optional[int] = Field(default=None, ge=0, description="Millilitres")

    @field_validator("feeding_type", mode="before")
    @classmethod
    def map_legacy_feeding_type(cls, value):
        return _map_legacy(value)


QuickLog = Annotated[Union[SleepLog, DiaperLog, FeedingLog], Field(discriminator="type")]

quick_log_adapter = TypeAdapter(QuickLog)


class ActiveSleep(BaseModel):
    """The single in-progress sleep session, if any."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    start_time: datetime = Field(alias="startTime")

    @field_validator("start_time")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
_BASE36 = string.digits + string.ascii_lowercase


def generate_quick_log_id() -> str:
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"quick-{int(time.time() * 1000)}-{suffix}"


def calculate_duration(start: datetime, end: Optional[datetime] = None) -> int:
    """Elapsed milliseconds between two timestamps, end defaulting to now."""
    end = ensure_aware(end) if end is not None else utc_now()
    return int((end - ensure_aware(start)).total_seconds() * 1000)


def format_duration(milliseconds: int) -> str:
    hours = milliseconds // (1000 * 60 * 60)
    minutes = (milliseconds % (1000 * 60 * 60)) // (1000 * 60)

    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def calculate_interval(
    logs: list[QuickLog],
    log_type: QuickLogType | str,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """Time since the most recent log of ``log_type``; ``logs`` must be newest first."""
    log_type = QuickLogType(log_type).value
    typed_logs = [log for log in logs if log.type == log_type]
    if not typed_logs:
        return None

    latest = typed_logs[0]
    return format_duration(calculate_duration(latest.timestamp, now))
