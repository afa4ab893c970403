import json
import re
import pytest
from datetime import datetime, timedelta, timezone
from pydantic import ValidationError
from growthlens.domain.quick_log import (
    ActiveSleep,
    DiaperLog,
    DiaperType,
    FeedingLog,
    FeedingType,
    QuickLogType,
    SleepAction,
    SleepLog,
    calculate_duration,
    calculate_interval,
    format_duration,
    generate_quick_log_id,
)
from growthlens.errors import (
    LogValidationError,
    NoActiveSleepError,
    RecordNotFoundError,
    SleepInProgressError,
)
from growthlens.storage.backend import MemoryBackend
from growthlens.storage.quick_log_storage import (
    QuickLogStore,
    STORAGE_KEY_ACTIVE_SLEEP,
    STORAGE_KEY_QUICK_LOGS,
)

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(name="backend")
def backend_fixture():
    return MemoryBackend()


@pytest.fixture(name="store")
def store_fixture(backend):
    return QuickLogStore(backend)


@pytest.fixture
def mixed_logs(store):
    logs = [
        DiaperLog(id="d1", diaper_type=DiaperType.PEE, timestamp=T0),
        FeedingLog(id="f1", feeding_type=FeedingType.LEFT, duration=15, timestamp=T0 + timedelta(hours=1)),
        DiaperLog(id="d2", diaper_type=DiaperType.POOP, timestamp=T0 + timedelta(hours=3)),
        FeedingLog(id="f2", feeding_type=FeedingType.FORMULA, amount=120, timestamp=T0 + timedelta(hours=2)),
    ]
    for log in logs:
        store.add(log)
    return logs


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------
def test_load_all_is_newest_first_and_typed(store, mixed_logs):
    logs = store.load_all()
    assert [log.id for log in logs] == ["d2", "f2", "f1", "d1"]
    assert isinstance(logs[0], DiaperLog)
    assert isinstance(logs[1], FeedingLog)
    assert logs[1].amount == 120


def test_records_use_camel_case_on_disk(store, backend, mixed_logs):
    data = json.loads(backend.get(STORAGE_KEY_QUICK_LOGS))
    assert data["version"] == 1
    by_id = {r["id"]: r for r in data["records"]}
    assert by_id["d1"] == {"id": "d1", "type": "diaper", "diaperType": "pee", "timestamp": "2024-05-01T09:00:00Z"}
    assert by_id["f2"]["feedingType"] == "formula"
    assert "duration" not in by_id["f2"]


def test_get_by_type(store, mixed_logs):
    assert [log.id for log in store.get_by_type(QuickLogType.DIAPER)] == ["d2", "d1"]
    assert [log.id for log in store.get_by_type("feeding")] == ["f2", "f1"]
    assert store.get_by_type("sleep") == []


def test_get_latest_by_type(store, mixed_logs):
    assert store.get_latest_by_type("feeding").id == "f2"
    assert store.get_latest_by_type(QuickLogType.SLEEP) is None


def test_update_preserves_variant_fields(store, mixed_logs):
    store.update("f2", amount=150, type="diaper")

    log = store.get("f2")
    assert isinstance(log, FeedingLog)
    assert log.amount == 150
    assert log.feeding_type == FeedingType.FORMULA
    assert log.timestamp == T0 + timedelta(hours=2)


def test_update_validates_against_variant(store, mixed_logs):
    with pytest.raises(LogValidationError):
        store.update("d1", diaper_type="sideways")
    assert store.get("d1").diaper_type == DiaperType.PEE


def test_update_missing(store):
    with pytest.raises(RecordNotFoundError):
        store.update("missing", note="x")


def test_remove_is_idempotent(store, backend, mixed_logs):
    store.remove("d1")
    before = backend.get(STORAGE_KEY_QUICK_LOGS)
    store.remove("d1")
    assert backend.get(STORAGE_KEY_QUICK_LOGS) == before
    assert "d1" not in [log.id for log in store.load_all()]


def test_legacy_quick_logs_are_upgraded():
    legacy = [
        {"id": "s1", "type": "sleep", "action": "寝た", "timestamp": "2024-05-01T09:00:00.000Z"},
        {"id": "s2", "type": "sleep", "action": "起きた", "timestamp": "2024-05-01T10:30:00.000Z", "duration": 5400000},
        {"id": "f1", "type": "feeding", "feedingType": "ミルク", "timestamp": "2024-05-01T11:00:00.000Z", "amount": 100},
    ]
    backend = MemoryBackend({STORAGE_KEY_QUICK_LOGS: json.dumps(legacy)})

    logs = QuickLogStore(backend).load_all()

    assert [log.id for log in logs] == ["f1", "s2", "s1"]
    assert logs[0].feeding_type == FeedingType.FORMULA
    assert logs[1].action == SleepAction.WOKE
    assert json.loads(backend.get(STORAGE_KEY_QUICK_LOGS))["version"] == 1


def test_corrupt_quick_logs_are_backed_up():
    backend = MemoryBackend({STORAGE_KEY_QUICK_LOGS: "[{]"})
    assert QuickLogStore(backend).load_all() == []

    backups = [k for k in backend.keys() if "_backup_" in k]
    assert len(backups) == 1
    assert backups[0].startswith(f"{STORAGE_KEY_QUICK_LOGS}_backup_")
    assert backend.get(backups[0]) == "[{]"


def test_unknown_type_counts_as_corrupt():
    raw = json.dumps({"version": 1, "records": [{"id": "x", "type": "bath", "timestamp": "2024-05-01T09:00:00Z"}]})
    backend = MemoryBackend({STORAGE_KEY_QUICK_LOGS: raw})
    assert QuickLogStore(backend).load_all() == []
    assert backend.get(STORAGE_KEY_QUICK_LOGS) == raw


# ---------------------------------------------------------------------------
# Day window
# ---------------------------------------------------------------------------
def test_get_today_logs_uses_local_midnight(store):
    now = datetime(2024, 5, 1, 9, 30).astimezone()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    store.add(DiaperLog(id="yesterday", diaper_type="pee", timestamp=midnight - timedelta(minutes=1)))
    store.add(DiaperLog(id="midnight", diaper_type="pee", timestamp=midnight))
    store.add(DiaperLog(id="morning", diaper_type="poop", timestamp=now - timedelta(hours=1)))

    assert [log.id for log in store.get_today_logs(now=now)] == ["morning", "midnight"]


# ---------------------------------------------------------------------------
# Active sleep
# ---------------------------------------------------------------------------
def test_active_sleep_round_trip(store):
    session = ActiveSleep(id="s1", start_time=T0)
    store.save_active_sleep(session)
    assert store.load_active_sleep() == session


def test_clearing_active_sleep_removes_key(store, backend):
    store.save_active_sleep(ActiveSleep(id="s1", start_time=T0))
    store.save_active_sleep(None)

    assert store.load_active_sleep() is None
    assert STORAGE_KEY_ACTIVE_SLEEP not in backend.keys()


def test_unreadable_active_sleep_is_ignored():
    backend = MemoryBackend({STORAGE_KEY_ACTIVE_SLEEP: "{broken"})
    assert QuickLogStore(backend).load_active_sleep() is None

    backend.set(STORAGE_KEY_ACTIVE_SLEEP, '{"id": "s1"}')
    assert QuickLogStore(backend).load_active_sleep() is None


def test_sleep_session_flow(store, backend):
    session = store.start_sleep(now=T0)
    assert store.load_active_sleep() == session

    woke = store.end_sleep(now=T0 + timedelta(minutes=90))

    assert woke.action == SleepAction.WOKE
    assert woke.duration == 90 * 60 * 1000
    assert store.load_active_sleep() is None
    assert backend.get(STORAGE_KEY_ACTIVE_SLEEP) is None

    slept, = [log for log in store.get_by_type("sleep") if log.action == SleepAction.SLEPT]
    assert slept.id == session.id
    assert slept.duration is None
    assert store.get_latest_by_type("sleep").id == woke.id


def test_end_sleep_without_session(store):
    with pytest.raises(NoActiveSleepError):
        store.end_sleep()


def test_start_sleep_twice(store):
    store.start_sleep(now=T0)
    with pytest.raises(SleepInProgressError):
        store.start_sleep(now=T0 + timedelta(minutes=1))
    assert len(store.get_by_type("sleep")) == 1


def test_end_sleep_before_start_records_zero_duration(store, backend):
    store.start_sleep(now=T0)
    woke = store.end_sleep(now=T0 - timedelta(minutes=5))

    assert woke.duration == 0
    assert backend.get(STORAGE_KEY_ACTIVE_SLEEP) is None


# ---------------------------------------------------------------------------
# Model + helpers
# ---------------------------------------------------------------------------
def test_slept_event_cannot_carry_duration():
    with pytest.raises(ValidationError):
        SleepLog(action="slept", duration=1000)


def test_generate_quick_log_id():
    first, second = generate_quick_log_id(), generate_quick_log_id()
    assert re.fullmatch(r"quick-\d{13}-[0-9a-z]{9}", first)
    assert first != second


def test_calculate_duration():
    assert calculate_duration(T0, T0 + timedelta(hours=2, minutes=5)) == 7_500_000


@pytest.mark.parametrize("ms, expected", [
    (0, "0m"),
    (59_999, "0m"),
    (45 * 60 * 1000, "45m"),
    (90 * 60 * 1000, "1h 30m"),
    (25 * 60 * 60 * 1000, "25h 0m"),
])
def test_format_duration(ms, expected):
    assert format_duration(ms) == expected


def test_calculate_interval(store, mixed_logs):
    logs = store.load_all()
    now = T0 + timedelta(hours=5)

    assert calculate_interval(logs, "feeding", now=now) == "3h 0m"
    assert calculate_interval(logs, QuickLogType.DIAPER, now=now) == "2h 0m"
    assert calculate_interval(logs, "sleep", now=now) is None
