from sqlmodel import Field
from growthlens.models.base import TimestampMixin


class KeyValueEntry(TimestampMixin, table=True):
    """One row per backend key. The value is an opaque string, usually a JSON envelope."""
    __tablename__ = "kv_entry"

    key: str = Field(primary_key=True, max_length=255)
    value: str
