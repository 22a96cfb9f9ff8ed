"""Domain events emitted after committed lifecycle transitions."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from gallery_workflow.domain.galleries import GalleryRecord, GalleryStatus


@dataclass(frozen=True)
class GalleryTransitioned:
    """A gallery moved from one status to another (or re-announced delivery)."""

    name: str
    gallery: GalleryRecord
    from_status: GalleryStatus
    to_status: GalleryStatus
    client_emails: list[str] = field(default_factory=list)
    download_link: str | None = None
    details: dict[str, object] = field(default_factory=dict)
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def gallery_id(self) -> UUID:
        return self.gallery.id
