from growthlens.domain.log import (
    GrowthLog,
    LogTag,
    TAGS,
    NOTE_MAX_LENGTH,
    PHOTO_LABEL_MAX_LENGTH,
    ValidationResult,
    validate_note,
    validate_photo_label,
    validate_log,
    generate_log_id,
)
from growthlens.domain.quick_log import (
    QuickLog,
    QuickLogType,
    SleepLog,
    SleepAction,
    DiaperLog,
    DiaperType,
    FeedingLog,
    FeedingType,
    ActiveSleep,
    generate_quick_log_id,
    calculate_duration,
    format_duration,
    calculate_interval,
)

__all__ = [
    "GrowthLog", "LogTag", "TAGS", "NOTE_MAX_LENGTH", "PHOTO_LABEL_MAX_LENGTH", "ValidationResult",
    "validate_note", "validate_photo_label", "validate_log", "generate_log_id",
    "QuickLog", "QuickLogType",
    "SleepLog", "SleepAction", "DiaperLog", "DiaperType", "FeedingLog", "FeedingType",
    "ActiveSleep",
    "generate_quick_log_id", "calculate_duration", "format_duration", "calculate_interval",
]
