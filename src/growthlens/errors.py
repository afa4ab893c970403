"""
Exception types shared by the stores, the domain helpers and the CLI.

Messages are meant to be shown to the user as-is.
"""


class GrowthLensError(Exception):
    """Base class for every error raised by growthlens."""


class StorageError(GrowthLensError):
    """Something went wrong reading or writing the key-value backend."""


class StorageWriteError(StorageError):
    """The backend rejected a write. Never retried automatically."""

    def __init__(self, key: str, message: str = "save failed, check available storage"):
        self.key = key
        super().__init__(message)


class RecordNotFoundError(StorageError):
    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__("record not found")


class CorruptPayloadError(StorageError):
    """
    Raised by the codec when a stored payload is not a usable envelope.

    The stores catch this on their read path, so it never reaches a caller
    of load_all().
    """

    def __init__(self, raw: str, details: str):
        self.raw = raw
        self.details = details
        super().__init__(f"Corrupt payload: {details}")


class LogValidationError(GrowthLensError):
    """A record failed validation before it could be written."""


class NoActiveSleepError(GrowthLensError):
    def __init__(self):
        super().__init__("no sleep session in progress")


class SleepInProgressError(GrowthLensError):
    def __init__(self):
        super().__init__("a sleep session is already in progress")
