"""Row conversion helpers shared by the Supabase repositories."""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID


def parse_datetime(value: object) -> datetime | None:
    """Parse a timestamp column, returning None for empty values."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None


def serialize_changes(changes: dict[str, object]) -> dict[str, object]:
    """Convert python values into JSON-ready column values."""
    serialized: dict[str, object] = {}
    for key, value in changes.items():
        if isinstance(value, datetime):
            serialized[key] = value.isoformat()
        elif isinstance(value, UUID):
            serialized[key] = str(value)
        elif isinstance(value, Enum):
            serialized[key] = value.value
        else:
            serialized[key] = value
    return serialized


def utc_now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()
