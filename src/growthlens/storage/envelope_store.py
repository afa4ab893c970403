"""
Shared read-modify-write machinery for stores that keep a record list under
one backend key.

Every mutation loads the whole envelope, changes it in memory and writes it
back. Mutations through one store instance are serialized by a lock; two
instances (or two processes) writing the same key are last-write-wins.
"""
import threading
import time
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from growthlens.errors import (
    CorruptPayloadError,
    LogValidationError,
    RecordNotFoundError,
    StorageWriteError,
)
from growthlens.logging import logger
from growthlens.storage import codec
from growthlens.storage.backend import KeyValueBackend

T = TypeVar("T", bound=BaseModel)


class EnvelopeStore(Generic[T]):
    #: fields update() never changes
    immutable_fields: frozenset[str] = frozenset({"id"})

    def __init__(self, backend: KeyValueBackend, key: str) -> None:
        self.backend = backend
        self.key = key
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Hooks for subclasses
    # ------------------------------------------------------------------

    def parse_record(self, record: dict[str, Any]) -> T:
        raise NotImplementedError

    def sort_key(self, record: T) -> datetime:
        raise NotImplementedError

    def check(self, record: T) -> None:
        """Raise LogValidationError if ``record`` may not be written."""

    def merge(self, existing: T, fields: dict[str, Any]) -> T:
        # fields may arrive under their on-disk alias (createdAt) or their attribute name
        aliases = {info.alias: name for name, info in type(existing).model_fields.items() if info.alias}
        data = existing.model_dump()
        for key, value in fields.items():
            name = aliases.get(key, key)
            if name not in self.immutable_fields:
                data[name] = value
        try:
            return type(existing).model_validate(data)
        except ValidationError as e:
            raise LogValidationError(_first_error(e)) from e

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def _read(self) -> list[T]:
        """Records in stored order. Corrupt payloads are backed up and read as empty."""
        raw = self.backend.get(self.key)
        try:
            envelope = codec.decode(raw)
            records = [self.parse_record(r) for r in envelope.records]
        except CorruptPayloadError as e:
            self._backup(raw, e.details)
            return []
        except ValidationError as e:
            self._backup(raw, f"record failed validation: {_first_error(e)}")
            return []

        if envelope.legacy:
            self.migrate_legacy(records)
        return records

    def _backup(self, raw: str, details: str) -> None:
        prefix = f"{self.key}_backup_"
        for existing in self.backend.keys(prefix):
            if self.backend.get(existing) == raw:
                logger.warning(f"Corrupt payload under {self.key} is already backed up as {existing}")
                return

        backup_key = f"{prefix}{int(time.time() * 1000)}"
        try:
            self.backend.set(backup_key, raw)
        except Exception:
            logger.exception(f"Could not back up corrupt payload of {self.key}")
            return
        logger.error(f"Corrupt payload under {self.key} ({details}); raw data copied to {backup_key}")

    def migrate_legacy(self, records: list[T]) -> None:
        """Rewrite a bare-array payload as a versioned envelope, keeping its order."""
        logger.info(f"Upgrading {len(records)} legacy records under {self.key} to envelope v{codec.CURRENT_VERSION}")
        try:
            self.save_all(records)
        except StorageWriteError:
            # Records are still returned; the upgrade is retried on the next read
            logger.warning(f"Legacy upgrade of {self.key} could not be written")

    def load_all(self) -> list[T]:
        """All records, newest first. Ties keep their stored order."""
        return sorted(self._read(), key=self.sort_key, reverse=True)

    def get(self, record_id: str) -> Optional[T]:
        for record in self._read():
            if record.id == record_id:
                return record
        return None

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def save_all(self, records: list[T]) -> None:
        payload = codec.encode([r.to_record() for r in records])
        try:
            self.backend.set(self.key, payload)
        except Exception as e:
            logger.error(f"Failed to save {len(records)} records under {self.key}: {e}")
            raise StorageWriteError(self.key) from e

    def add(self, record: T) -> T:
        self.check(record)
        with self._lock:
            records = self.load_all()
            records.insert(0, record)
            self.save_all(records)
        return record

    def update(self, record_id: str, **fields: Any) -> T:
        with self._lock:
            records = self.load_all()
            for index, existing in enumerate(records):
                if existing.id == record_id:
                    break
            else:
                raise RecordNotFoundError(record_id)

            updated = self.merge(existing, fields)
            self.check(updated)
            records[index] = updated
            self.save_all(records)
        return updated

    def remove(self, record_id: str) -> None:
        with self._lock:
            records = self.load_all()
            remaining = [r for r in records if r.id != record_id]
            if len(remaining) != len(records):
                self.save_all(remaining)

    def remove_all(self) -> None:
        with self._lock:
            self.save_all([])


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]
