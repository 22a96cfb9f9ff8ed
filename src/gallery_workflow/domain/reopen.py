"""Domain models for reopen requests."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class ReopenStatus(StrEnum):
    """Resolution state of a reopen request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ReopenRequestRecord:
    """Represents a client's request to unlock a finalized gallery."""

    id: UUID
    gallery_id: UUID
    status: ReopenStatus
    message: str | None
    created_at: datetime
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    user_id: UUID | None = None
