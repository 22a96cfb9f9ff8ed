"""Finalization of a client's package."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from gallery_workflow.domain.errors import (
    AddOnOnUnselectedPhoto,
    EmptySelection,
    ForeignPhoto,
    GalleryNotEditable,
    StorageError,
)
from gallery_workflow.domain.finalize import (
    AddOns,
    FinalizeResult,
    PhotoChoice,
    ReferenceFile,
    StoredFile,
)
from gallery_workflow.domain.galleries import GalleryRecord, GalleryStatus, PhotoRecord
from gallery_workflow.services.lifecycle import GalleryLifecycleController
from gallery_workflow.services.selection import PhotoRepository

logger = logging.getLogger(__name__)


class FileStorage(Protocol):
    """Interface for the external file storage."""

    def upload(self, path: str, content: bytes, content_type: str) -> StoredFile:
        """Store a file and return where it can be fetched."""

    def remove(self, path: str) -> None:
        """Delete a stored file."""


class FeedbackRepository(Protocol):
    """Persistence interface for finalize comments and staging references."""

    def create_feedback(
        self, gallery_id: UUID, message: str, author_id: UUID | None = None
    ) -> UUID:
        """Store a gallery-level comment and return its id."""

    def delete_feedback(self, feedback_id: UUID) -> None:
        """Remove a stored comment."""

    def create_staging_reference(
        self,
        photo_id: UUID,
        file_url: str,
        notes: str | None,
        uploader_id: UUID | None = None,
    ) -> UUID:
        """Attach a staging inspiration file to a staged photo; return its id."""

    def delete_staging_reference(self, reference_id: UUID) -> None:
        """Remove a staging reference."""


@dataclass
class FinalizationCoordinator:
    """Turns an in-progress selection into a committed package."""

    controller: GalleryLifecycleController
    photo_repository: PhotoRepository
    feedback_repository: FeedbackRepository
    storage: FileStorage

    async def finalize(  # noqa: PLR0913
        self,
        gallery_id: UUID,
        selected_photo_ids: list[UUID],
        add_ons: AddOns | None = None,
        comment: str | None = None,
        reference_file: ReferenceFile | None = None,
        actor_id: UUID | None = None,
    ) -> FinalizeResult:
        """Validate and commit the package, then close the gallery.

        The gallery is claimed before the first write, so a concurrent
        finalize is refused with GalleryNotEditable instead of interleaving
        its photo writes. Either every write lands and the gallery is Closed,
        or prior photo state is restored, the claim is released and the error
        is raised to the caller.
        """
        add_ons = add_ons or AddOns()
        gallery = self.controller.get_gallery(gallery_id)
        if not gallery.is_editable:
            raise GalleryNotEditable(gallery.id, gallery.status, gallery.is_locked)
        selected = list(dict.fromkeys(selected_photo_ids))
        if not selected:
            raise EmptySelection()
        photos = self.photo_repository.list_photos(gallery.id)
        _validate_package(gallery, photos, selected, add_ons)

        gallery = self.controller.claim_for_finalize(gallery.id)
        snapshot: list[PhotoChoice] = []
        stored: StoredFile | None = None
        feedback_id: UUID | None = None
        reference_id: UUID | None = None
        try:
            photos = self.photo_repository.list_photos(gallery.id)
            snapshot = [_choice_from_photo(photo) for photo in photos]
            choices = _build_choices(photos, set(selected), add_ons)
            staging_count = sum(1 for choice in choices if choice.staging_requested)
            blue_hour_count = sum(
                1 for choice in choices if choice.blue_hour_requested
            )
            if reference_file is not None:
                stored = self._store_reference(gallery, reference_file)
            self.photo_repository.apply_choices(choices)
            if comment and comment.strip():
                feedback_id = self.feedback_repository.create_feedback(
                    gallery.id, comment.strip(), author_id=actor_id
                )
            staged_photo_id = _first_staged(choices)
            if stored is not None and staged_photo_id is not None:
                reference_id = self.feedback_repository.create_staging_reference(
                    photo_id=staged_photo_id,
                    file_url=stored.public_url,
                    notes=add_ons.staging_comment,
                    uploader_id=actor_id,
                )
            closed = await self.controller.close_for_review(
                gallery.id,
                express_delivery=add_ons.express_delivery,
                details={
                    "services": {
                        "express_delivery": add_ons.express_delivery,
                        "virtual_staging": staging_count > 0,
                        "blue_hour": blue_hour_count > 0,
                    },
                    "selected_count": len(selected),
                    "staging_count": staging_count,
                    "blue_hour_count": blue_hour_count,
                },
            )
        except Exception:
            logger.warning(
                "Finalize failed, restoring previous state",
                extra={"gallery_id": str(gallery.id)},
            )
            self._compensate(gallery.id, snapshot, feedback_id, reference_id, stored)
            raise

        logger.info(
            "Gallery finalized",
            extra={"gallery_id": str(gallery.id), "selected_count": len(selected)},
        )
        return FinalizeResult(
            gallery=closed,
            selected_count=len(selected),
            staging_count=staging_count,
            blue_hour_count=blue_hour_count,
            express_delivery=add_ons.express_delivery,
            reference_url=stored.public_url if stored else None,
        )

    def _store_reference(
        self, gallery: GalleryRecord, reference_file: ReferenceFile
    ) -> StoredFile:
        stamp = int(datetime.now(tz=UTC).timestamp() * 1000)
        path = f"{gallery.slug}/staging-ref-{stamp}.{reference_file.extension}"
        try:
            return self.storage.upload(
                path, reference_file.content, reference_file.content_type
            )
        except Exception as exc:
            logger.exception(
                "Reference upload failed", extra={"gallery_id": str(gallery.id)}
            )
            raise StorageError(f"Could not store reference file: {exc}") from exc

    def _compensate(  # noqa: PLR0913
        self,
        gallery_id: UUID,
        snapshot: list[PhotoChoice],
        feedback_id: UUID | None,
        reference_id: UUID | None,
        stored: StoredFile | None,
    ) -> None:
        steps: list[tuple[str, Callable[[], object]]] = []
        if self._holds_claim(gallery_id):
            steps.append(
                ("photos", lambda: self.photo_repository.apply_choices(snapshot))
            )
            steps.append(
                ("claim", lambda: self.controller.release_finalize_claim(gallery_id))
            )
        else:
            # Photo rows now belong to whatever state the gallery moved to.
            logger.warning(
                "Gallery left Open during finalize; keeping stored photo state",
                extra={"gallery_id": str(gallery_id)},
            )
        if feedback_id is not None:
            steps.append(
                (
                    "feedback",
                    lambda: self.feedback_repository.delete_feedback(feedback_id),
                )
            )
        if reference_id is not None:
            steps.append(
                (
                    "staging_reference",
                    lambda: self.feedback_repository.delete_staging_reference(
                        reference_id
                    ),
                )
            )
        if stored is not None:
            steps.append(("reference_file", lambda: self.storage.remove(stored.path)))
        for name, step in steps:
            try:
                step()
            except Exception:
                logger.exception("Compensation step failed", extra={"step": name})

    def _holds_claim(self, gallery_id: UUID) -> bool:
        try:
            gallery = self.controller.get_gallery(gallery_id)
        except Exception:
            logger.exception(
                "Could not read gallery during compensation",
                extra={"gallery_id": str(gallery_id)},
            )
            return False
        return gallery.status == GalleryStatus.OPEN and gallery.is_locked


def _validate_package(
    gallery: GalleryRecord,
    photos: list[PhotoRecord],
    selected: list[UUID],
    add_ons: AddOns,
) -> None:
    gallery_photo_ids = {photo.id for photo in photos}
    foreign = [photo_id for photo_id in selected if photo_id not in gallery_photo_ids]
    if foreign:
        raise ForeignPhoto(gallery.id, foreign)
    selected_set = set(selected)
    unselected_staging = [
        staging.photo_id
        for staging in add_ons.staging_selections
        if staging.photo_id not in selected_set
    ]
    if unselected_staging:
        raise AddOnOnUnselectedPhoto("virtual_staging", unselected_staging)
    unselected_blue_hour = [
        photo_id
        for photo_id in add_ons.blue_hour_selections
        if photo_id not in selected_set
    ]
    if unselected_blue_hour:
        raise AddOnOnUnselectedPhoto("blue_hour", unselected_blue_hour)


def _build_choices(
    photos: list[PhotoRecord], selected: set[UUID], add_ons: AddOns
) -> list[PhotoChoice]:
    styles = {staging.photo_id: staging.style for staging in add_ons.staging_selections}
    blue_hour = set(add_ons.blue_hour_selections)
    return [
        PhotoChoice(
            photo_id=photo.id,
            is_selected=photo.id in selected,
            staging_requested=photo.id in styles,
            staging_style=styles.get(photo.id),
            blue_hour_requested=photo.id in blue_hour,
        )
        for photo in photos
    ]


def _choice_from_photo(photo: PhotoRecord) -> PhotoChoice:
    return PhotoChoice(
        photo_id=photo.id,
        is_selected=photo.is_selected,
        staging_requested=photo.staging_requested,
        staging_style=photo.staging_style,
        blue_hour_requested=photo.blue_hour_requested,
    )


def _first_staged(choices: list[PhotoChoice]) -> UUID | None:
    for choice in choices:
        if choice.staging_requested:
            return choice.photo_id
    return None
