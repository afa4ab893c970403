from growthlens.storage.backend import KeyValueBackend, MemoryBackend, SQLiteBackend
from growthlens.storage.log_storage import GrowthLogStore, STORAGE_KEY_LOGS
from growthlens.storage.quick_log_storage import (
    QuickLogStore,
    STORAGE_KEY_QUICK_LOGS,
    STORAGE_KEY_ACTIVE_SLEEP,
)

__all__ = [
    "KeyValueBackend", "MemoryBackend", "SQLiteBackend",
    "GrowthLogStore", "STORAGE_KEY_LOGS",
    "QuickLogStore", "STORAGE_KEY_QUICK_LOGS", "STORAGE_KEY_ACTIVE_SLEEP",
]
