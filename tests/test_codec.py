import json
import logging
import pytest
from unittest.mock import patch
from growthlens.errors import CorruptPayloadError
from growthlens.storage import codec


RECORDS = [
    {"id": "a", "createdAt": "2024-05-01T10:00:00+00:00", "tag": "sleep", "note": "napped"},
    {"id": "b", "createdAt": "2024-05-02T10:00:00+00:00", "tag": "eating", "note": "bottle"},
]


def test_round_trip():
    raw = codec.encode(RECORDS)
    assert json.loads(raw) == {"version": codec.CURRENT_VERSION, "records": RECORDS}

    decoded = codec.decode(raw)
    assert decoded.records == RECORDS
    assert decoded.version == codec.CURRENT_VERSION
    assert decoded.legacy is False


@pytest.mark.parametrize("raw", [None, ""])
def test_missing_payload_is_empty(raw):
    decoded = codec.decode(raw)
    assert decoded.records == []
    assert decoded.legacy is False


def test_bare_array_is_flagged_legacy():
    decoded = codec.decode(json.dumps(RECORDS))
    assert decoded.records == RECORDS
    assert decoded.legacy is True


def test_envelope_without_records_is_empty():
    assert codec.decode('{"version": 1}').records == []


def test_historical_logs_field_is_read():
    raw = json.dumps({"version": 1, "logs": RECORDS})
    assert codec.decode(raw).records == RECORDS


def test_version_mismatch_is_a_warning(caplog):
    raw = json.dumps({"version": 7, "records": RECORDS})
    with caplog.at_level(logging.WARNING, logger="growthlens"):
        decoded = codec.decode(raw)

    assert decoded.records == RECORDS
    assert decoded.version == 7
    assert any("differs from current version" in r.message for r in caplog.records)


def test_registered_migration_is_applied():
    def add_marker(records):
        return [{**r, "migrated": True} for r in records]

    raw = json.dumps({"version": 0, "records": RECORDS})
    with patch.dict(codec.MIGRATIONS, {0: add_marker}):
        decoded = codec.decode(raw)

    assert decoded.version == codec.CURRENT_VERSION
    assert all(r["migrated"] for r in decoded.records)


@pytest.mark.parametrize("raw", ["{not json", "42", '"text"', '{"records": 5}', "[1, 2]"])
def test_unusable_payload_raises(raw):
    with pytest.raises(CorruptPayloadError) as exc:
        codec.decode(raw)
    assert exc.value.raw == raw


@pytest.mark.parametrize("version", [[1], {"v": 1}, True, "1", None, 1.5])
def test_non_integer_version_is_a_warning(version, caplog):
    raw = json.dumps({"version": version, "records": RECORDS})
    with patch.dict(codec.MIGRATIONS, {1: lambda records: []}), caplog.at_level(logging.WARNING, logger="growthlens"):
        decoded = codec.decode(raw)

    assert decoded.records == RECORDS
    assert decoded.version == version
    assert any("not a schema number" in r.message for r in caplog.records)
