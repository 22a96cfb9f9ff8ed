"""Per-photo selection state and the client's per-photo edits."""

import logging
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from gallery_workflow.domain.errors import (
    GalleryNotEditable,
    GalleryNotFound,
    PhotoNotFound,
    StaleState,
    StagingStyleWithoutStaging,
)
from gallery_workflow.domain.finalize import PhotoChoice
from gallery_workflow.domain.galleries import GalleryRecord, PhotoRecord
from gallery_workflow.services.lifecycle import GalleryRepository

logger = logging.getLogger(__name__)


class PhotoRepository(Protocol):
    """Persistence interface for photos."""

    def get_photo(self, photo_id: UUID) -> PhotoRecord | None:
        """Return a photo by id, if present."""

    def list_photos(self, gallery_id: UUID) -> list[PhotoRecord]:
        """Return the gallery's photos ordered by upload order."""

    def set_selection(
        self, photo_id: UUID, value: bool, expected: bool | None = None
    ) -> PhotoRecord | None:
        """Write is_selected; with expected set, only if it still matches.

        Returns the updated photo, or None when the guard did not match.
        """

    def update_photo(self, photo_id: UUID, changes: dict[str, object]) -> None:
        """Update client-editable photo fields."""

    def apply_choices(self, choices: list[PhotoChoice]) -> None:
        """Write selection and add-on fields for many photos."""


@dataclass
class SelectionLedger:
    """Records selection state while a gallery is open for the client."""

    photo_repository: PhotoRepository
    gallery_repository: GalleryRepository

    def list_photos(self, gallery_id: UUID) -> list[PhotoRecord]:
        """Return the gallery's photos in upload order."""
        return self.photo_repository.list_photos(gallery_id)

    def toggle(
        self, photo_id: UUID, expected_current_state: bool, strict: bool = True
    ) -> bool:
        """Flip a photo's selection and return the new state.

        In strict mode the write only lands if the stored value still equals
        ``expected_current_state``; otherwise StaleState is raised and the
        caller must refetch. Non-strict writes are last-write-wins.
        """
        photo = self._editable_photo(photo_id)
        new_state = not expected_current_state
        if strict:
            updated = self.photo_repository.set_selection(
                photo.id, new_state, expected=expected_current_state
            )
            if updated is None:
                raise StaleState(photo.id, expected_current_state)
        else:
            self.photo_repository.set_selection(photo.id, new_state)
        return new_state

    def set_selection(self, photo_id: UUID, value: bool) -> None:
        """Write a selection value without a staleness check."""
        photo = self._editable_photo(photo_id)
        self.photo_repository.set_selection(photo.id, value)

    def update_details(
        self,
        photo_id: UUID,
        comment: str | None = None,
        staging_requested: bool | None = None,
        staging_style: str | None = None,
        blue_hour_requested: bool | None = None,
    ) -> None:
        """Update per-photo client notes and add-on requests.

        ``None`` leaves a field unchanged; an empty comment clears it. A style
        for a photo that is not staged raises StagingStyleWithoutStaging.
        """
        photo = self._editable_photo(photo_id)
        if staging_requested is None:
            staging_requested_now = photo.staging_requested
        else:
            staging_requested_now = staging_requested
        if staging_style is not None and not staging_requested_now:
            raise StagingStyleWithoutStaging(photo.id)
        changes: dict[str, object] = {}
        if comment is not None:
            changes["client_comment"] = comment.strip() or None
        if staging_requested is not None:
            changes["staging_requested"] = staging_requested
            changes["staging_style"] = staging_style if staging_requested else None
        elif staging_style is not None:
            changes["staging_style"] = staging_style
        if blue_hour_requested is not None:
            changes["blue_hour_requested"] = blue_hour_requested
        if changes:
            self.photo_repository.update_photo(photo.id, changes)

    def _editable_photo(self, photo_id: UUID) -> PhotoRecord:
        photo = self.photo_repository.get_photo(photo_id)
        if photo is None:
            raise PhotoNotFound(photo_id)
        gallery = self._gallery(photo.gallery_id)
        if not gallery.is_editable:
            raise GalleryNotEditable(gallery.id, gallery.status, gallery.is_locked)
        return photo

    def _gallery(self, gallery_id: UUID) -> GalleryRecord:
        gallery = self.gallery_repository.get_gallery(gallery_id)
        if gallery is None:
            raise GalleryNotFound(gallery_id)
        return gallery


@dataclass(frozen=True)
class FlushReport:
    """Outcome of flushing pending selection writes."""

    written: list[UUID] = field(default_factory=list)
    failed: list[UUID] = field(default_factory=list)
    dropped: list[UUID] = field(default_factory=list)


@dataclass
class SelectionBuffer:
    """Optimistic selection state for one client session.

    ``pending`` holds values shown to the user but not yet stored;
    ``persisted`` holds values the store has confirmed. Pending values win in
    ``view()`` and are retried until a flush stores them.
    """

    ledger: SelectionLedger
    persisted: dict[UUID, bool] = field(default_factory=dict)
    pending: dict[UUID, bool] = field(default_factory=dict)

    @classmethod
    def load(cls, ledger: SelectionLedger, gallery_id: UUID) -> "SelectionBuffer":
        """Create a buffer seeded with the stored selection."""
        photos = ledger.list_photos(gallery_id)
        return cls(
            ledger=ledger,
            persisted={photo.id: photo.is_selected for photo in photos},
        )

    def stage(self, photo_id: UUID, value: bool) -> None:
        """Record a selection the user just made."""
        if self.persisted.get(photo_id) == value:
            self.pending.pop(photo_id, None)
            return
        self.pending[photo_id] = value

    def view(self) -> dict[UUID, bool]:
        """Return the selection as the user should currently see it."""
        return {**self.persisted, **self.pending}

    def selected_ids(self) -> list[UUID]:
        return [photo_id for photo_id, value in self.view().items() if value]

    def flush(self) -> FlushReport:
        """Store every pending value; failed writes stay pending."""
        report = FlushReport()
        for photo_id, value in list(self.pending.items()):
            try:
                self.ledger.set_selection(photo_id, value)
            except (GalleryNotEditable, PhotoNotFound):
                logger.info(
                    "Dropping pending selection", extra={"photo_id": str(photo_id)}
                )
                self.pending.pop(photo_id, None)
                report.dropped.append(photo_id)
            except Exception:
                logger.exception(
                    "Failed to store selection", extra={"photo_id": str(photo_id)}
                )
                report.failed.append(photo_id)
            else:
                self.persisted[photo_id] = value
                self.pending.pop(photo_id, None)
                report.written.append(photo_id)
        return report
