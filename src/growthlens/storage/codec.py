"""
Versioned envelope codec.

On disk a record list is stored as::

    {"version": 1, "records": [...]}

Two older shapes are still read: a bare JSON array (the first generation
of the app, no envelope at all) and an envelope whose list lives under
``logs`` instead of ``records``.
"""
import json
from typing import Any, Callable, NamedTuple, Optional

from growthlens.errors import CorruptPayloadError
from growthlens.logging import logger

CURRENT_VERSION = 1

# source version -> function upgrading a record list to source version + 1
MIGRATIONS: dict[int, Callable[[list[dict[str, Any]]], list[dict[str, Any]]]] = {}


class DecodedEnvelope(NamedTuple):
    records: list[dict[str, Any]]
    version: Optional[int]
    legacy: bool = False


def encode(records: list[dict[str, Any]]) -> str:
    return json.dumps({"version": CURRENT_VERSION, "records": records}, ensure_ascii=False)


def decode(raw: Optional[str]) -> DecodedEnvelope:
    """
    Decode a stored payload. Never writes anything.

    Returns
    -------
    DecodedEnvelope
        ``legacy`` is True when the payload was a bare array and should be
        re-persisted in the envelope format by the caller.

    Raises
    ------
    CorruptPayloadError
        If the payload is not JSON, or is JSON of an unusable shape.
    """
    if not raw:
        return DecodedEnvelope(records=[], version=CURRENT_VERSION)

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CorruptPayloadError(raw, f"invalid JSON: {e}") from e

    if isinstance(parsed, list):
        _check_records(raw, parsed)
        return DecodedEnvelope(records=parsed, version=None, legacy=True)

    if not isinstance(parsed, dict):
        raise CorruptPayloadError(
            raw, f"expected an envelope object or a record array, got {type(parsed).__name__}"
        )

    records = parsed.get("records")
    if records is None:
        records = parsed.get("logs", [])
    _check_records(raw, records)

    version = parsed.get("version")
    records, version = _upgrade(records, version)
    return DecodedEnvelope(records=records, version=version)


def _check_records(raw: str, records: Any) -> None:
    if not isinstance(records, list):
        raise CorruptPayloadError(raw, "records is not an array")
    for record in records:
        if not isinstance(record, dict):
            raise CorruptPayloadError(raw, f"record is not an object: {record!r}")


def _upgrade(records: list[dict[str, Any]], version: Any) -> tuple[list[dict[str, Any]], Any]:
    """Run registered migrations; an unknown version is read as-is."""
    # only integer versions have migrations; bool is an int subclass
    if not isinstance(version, int) or isinstance(version, bool):
        logger.warning(f"Envelope version {version!r} is not a schema number; reading records without migration")
        return records, version

    while version != CURRENT_VERSION and version in MIGRATIONS:
        logger.info(f"Migrating {len(records)} records from schema version {version}")
        records = MIGRATIONS[version](records)
        version += 1

    if version != CURRENT_VERSION:
        logger.warning(
            f"Envelope version {version!r} differs from current version {CURRENT_VERSION}; "
            f"reading records without migration"
        )
    return records, version
