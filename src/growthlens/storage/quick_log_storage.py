import json
from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError

from growthlens.config import settings
from growthlens.domain.log import utc_now
from growthlens.domain.quick_log import (
    ActiveSleep,
    QuickLog,
    QuickLogType,
    SleepAction,
    SleepLog,
    calculate_duration,
    generate_quick_log_id,
    quick_log_adapter,
)
from growthlens.errors import NoActiveSleepError, SleepInProgressError, StorageWriteError
from growthlens.logging import logger
from growthlens.storage.backend import KeyValueBackend
from growthlens.storage.envelope_store import EnvelopeStore

STORAGE_KEY_QUICK_LOGS = f"{settings.STORAGE_KEY_PREFIX}/quick-logs"
STORAGE_KEY_ACTIVE_SLEEP = f"{settings.STORAGE_KEY_PREFIX}/active-sleep"


class QuickLogStore(EnvelopeStore[QuickLog]):
    """
    Sleep, diaper and feeding events plus the active sleep session.

    The active session lives under its own key and is written independently
    of the event list.
    """

    immutable_fields = frozenset({"id", "type"})

    def __init__(
        self,
        backend: KeyValueBackend,
        key: str = STORAGE_KEY_QUICK_LOGS,
        active_sleep_key: str = STORAGE_KEY_ACTIVE_SLEEP,
    ) -> None:
        super().__init__(backend, key)
        self.active_sleep_key = active_sleep_key

    def parse_record(self, record: dict[str, Any]) -> QuickLog:
        return quick_log_adapter.validate_python(record)

    def sort_key(self, record: QuickLog) -> datetime:
        return record.timestamp

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_type(self, log_type: QuickLogType | str) -> list[QuickLog]:
        log_type = QuickLogType(log_type).value
        return [log for log in self.load_all() if log.type == log_type]

    def get_latest_by_type(self, log_type: QuickLogType | str) -> Optional[QuickLog]:
        logs = self.get_by_type(log_type)
        return logs[0] if logs else None

    def get_today_logs(self, now: Optional[datetime] = None) -> list[QuickLog]:
        """Logs at or after local midnight of the current day."""
        # astimezone() reads a naive value as local wall-clock time
        local_now = (now or datetime.now()).astimezone()
        midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
        return [log for log in self.load_all() if log.timestamp >= midnight]

    # ------------------------------------------------------------------
    # Active sleep session
    # ------------------------------------------------------------------

    def save_active_sleep(self, session: Optional[ActiveSleep]) -> None:
        """Store the session, or remove the key entirely when ``session`` is None."""
        try:
            if session is None:
                self.backend.remove(self.active_sleep_key)
            else:
                self.backend.set(self.active_sleep_key, json.dumps(session.to_record()))
        except Exception as e:
            logger.error(f"Failed to save active sleep: {e}")
            raise StorageWriteError(self.active_sleep_key) from e

    def load_active_sleep(self) -> Optional[ActiveSleep]:
        raw = self.backend.get(self.active_sleep_key)
        if not raw:
            return None
        try:
            return ActiveSleep.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable active sleep under {self.active_sleep_key}: {e}")
            return None

    def start_sleep(self, now: Optional[datetime] = None) -> ActiveSleep:
        """Open a sleep session and record the matching "slept" event."""
        with self._lock:
            if self.load_active_sleep() is not None:
                raise SleepInProgressError()

            session = ActiveSleep(id=generate_quick_log_id(), start_time=now or utc_now())
            self.save_active_sleep(session)
            self.add(SleepLog(id=session.id, action=SleepAction.SLEPT, timestamp=session.start_time))
        return session

    def end_sleep(self, now: Optional[datetime] = None) -> SleepLog:
        """Close the open session with a "woke" event carrying its duration."""
        with self._lock:
            session = self.load_active_sleep()
            if session is None:
                raise NoActiveSleepError()

            end_time = now or utc_now()
            duration = calculate_duration(session.start_time, end_time)
            if duration < 0:
                logger.warning(f"Sleep {session.id} ends before it started (clock moved back); recording 0m")
                duration = 0

            log = SleepLog(action=SleepAction.WOKE, timestamp=end_time, duration=duration)
            self.add(log)
            self.save_active_sleep(None)
        return log
