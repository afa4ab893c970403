"""
Key-value backends the stores persist into.

A backend maps string keys to string values. It gives per-key atomicity and
nothing more: no multi-key transactions, no locking across callers.
"""
from datetime import datetime, timezone
from typing import Optional, Protocol, runtime_checkable

from sqlmodel import Session, select

from growthlens.models.kv import KeyValueEntry


@runtime_checkable
class KeyValueBackend(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self, prefix: str = "") -> list[str]: ...


class MemoryBackend:
    """Dict-backed backend. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class SQLiteBackend:
    """
    Backend over the ``kv_entry`` table.

    Each call opens its own session and commits before returning, so a write
    is durable once ``set`` returns.
    """

    def __init__(self, engine) -> None:
        self.engine = engine

    def get(self, key: str) -> Optional[str]:
        with Session(self.engine) as session:
            entry = session.get(KeyValueEntry, key)
            return entry.value if entry is not None else None

    def set(self, key: str, value: str) -> None:
        with Session(self.engine) as session:
            entry = session.get(KeyValueEntry, key)
            if entry is None:
                entry = KeyValueEntry(key=key, value=value)
            else:
                entry.value = value
                entry.updated_at = datetime.now(timezone.utc)
            session.add(entry)
            session.commit()

    def remove(self, key: str) -> None:
        with Session(self.engine) as session:
            entry = session.get(KeyValueEntry, key)
            if entry is not None:
                session.delete(entry)
                session.commit()

    def keys(self, prefix: str = "") -> list[str]:
        with Session(self.engine) as session:
            statement = select(KeyValueEntry.key).order_by(KeyValueEntry.key)
            if prefix:
                statement = statement.where(KeyValueEntry.key.startswith(prefix, autoescape=True))
            return list(session.exec(statement).all())
