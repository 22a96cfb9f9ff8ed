"""Domain models for finalizing a client's package."""

from dataclasses import dataclass, field
from uuid import UUID

from gallery_workflow.domain.galleries import GalleryRecord


@dataclass(frozen=True)
class StagingSelection:
    """A virtual staging request for one photo."""

    photo_id: UUID
    style: str


@dataclass(frozen=True)
class AddOns:
    """Paid add-ons chosen while finalizing."""

    express_delivery: bool = False
    staging_selections: list[StagingSelection] = field(default_factory=list)
    blue_hour_selections: list[UUID] = field(default_factory=list)
    staging_comment: str | None = None


@dataclass(frozen=True)
class ReferenceFile:
    """A staging inspiration image supplied by the client."""

    filename: str
    content_type: str
    content: bytes

    @property
    def extension(self) -> str:
        """Return the lowercase file extension, or "bin" when missing."""
        _, dot, ext = self.filename.rpartition(".")
        return ext.lower() if dot and ext else "bin"


@dataclass(frozen=True)
class PhotoChoice:
    """The client-controlled fields of one photo, as written by finalize."""

    photo_id: UUID
    is_selected: bool
    staging_requested: bool
    staging_style: str | None
    blue_hour_requested: bool


@dataclass(frozen=True)
class StoredFile:
    """A file handed to storage, with its public URL."""

    path: str
    public_url: str


@dataclass(frozen=True)
class FinalizeResult:
    """Outcome of a successful finalize call."""

    gallery: GalleryRecord
    selected_count: int
    staging_count: int
    blue_hour_count: int
    express_delivery: bool
    reference_url: str | None = None

    @property
    def target_count(self) -> int:
        """Return the contracted photo quota."""
        return self.gallery.package_target_count

    @property
    def target_difference(self) -> int:
        """Return selected minus target; positive means over the quota."""
        return self.selected_count - self.gallery.package_target_count
