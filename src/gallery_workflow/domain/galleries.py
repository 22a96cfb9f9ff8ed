"""Domain models for galleries and their photos."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class GalleryStatus(StrEnum):
    """Lifecycle status of a gallery. Values are stored verbatim."""

    PLANNING = "Planning"
    OPEN = "Open"
    CLOSED = "Closed"
    PROCESSING = "Processing"
    DELIVERED = "Delivered"


@dataclass(frozen=True)
class GalleryRecord:
    """Represents a persisted gallery."""

    id: UUID
    slug: str
    name: str
    status: GalleryStatus
    package_target_count: int
    is_locked: bool = False
    express_delivery_requested: bool = False
    sent_at: datetime | None = None
    reviewed_at: datetime | None = None
    delivered_at: datetime | None = None
    final_delivery_link: str | None = None

    @property
    def is_editable(self) -> bool:
        """Return true while the client may still change the selection."""
        return self.status == GalleryStatus.OPEN and not self.is_locked


@dataclass(frozen=True)
class PhotoRecord:
    """Represents a persisted photo and the client's choices for it."""

    id: UUID
    gallery_id: UUID
    filename: str
    upload_order: int
    is_selected: bool = False
    staging_requested: bool = False
    staging_style: str | None = None
    blue_hour_requested: bool = False
    client_comment: str | None = None


@dataclass(frozen=True)
class ClientView:
    """What the client-facing gallery page renders for the current status."""

    mode: str
    gallery: GalleryRecord
    photos: list[PhotoRecord]
