from datetime import datetime
from typing import Any, Optional

from growthlens.config import settings
from growthlens.domain.log import GrowthLog, LogTag, validate_log
from growthlens.errors import LogValidationError
from growthlens.storage.backend import KeyValueBackend
from growthlens.storage.envelope_store import EnvelopeStore

STORAGE_KEY_LOGS = f"{settings.STORAGE_KEY_PREFIX}/logs"


class GrowthLogStore(EnvelopeStore[GrowthLog]):
    """Growth log entries, newest first by ``created_at``."""

    immutable_fields = frozenset({"id", "created_at"})

    def __init__(self, backend: KeyValueBackend, key: str = STORAGE_KEY_LOGS) -> None:
        super().__init__(backend, key)

    def parse_record(self, record: dict[str, Any]) -> GrowthLog:
        return GrowthLog.model_validate(record)

    def sort_key(self, record: GrowthLog) -> datetime:
        return record.created_at

    def check(self, record: GrowthLog) -> None:
        result = validate_log(record)
        if not result.valid:
            raise LogValidationError(result.error)

    def create(
        self,
        tag: LogTag | str,
        note: str,
        photo_label: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> GrowthLog:
        """Validate, stamp with a fresh id and time, and add a new entry."""
        result = validate_log({"tag": tag, "note": note, "photo_label": photo_label})
        if not result.valid:
            raise LogValidationError(result.error)

        fields: dict[str, Any] = {
            "tag": tag,
            "note": note.strip(),
            "photo_label": photo_label.strip() if photo_label and photo_label.strip() else None,
        }
        if created_at is not None:
            fields["created_at"] = created_at
        return self.add(GrowthLog(**fields))
