"""Error taxonomy for gallery workflow operations.

Every error carries a machine-readable ``code``, the HTTP status the API layer
should answer with, and the ``guard`` that was violated so callers can show
the user exactly why an action was refused.
"""

from uuid import UUID


class GalleryWorkflowError(Exception):
    """Base class for all workflow errors."""

    code = "WORKFLOW_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str,
        guard: str,
        details: dict[str, object] | None = None,
    ) -> None:
        self.message = message
        self.guard = guard
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert the error to a JSON-serializable payload."""
        return {
            "code": self.code,
            "message": self.message,
            "guard": self.guard,
            "details": self.details,
        }


class IllegalTransition(GalleryWorkflowError):
    """A status change outside the transition table, or a failed guard."""

    code = "ILLEGAL_TRANSITION"
    status_code = 409

    def __init__(self, current: str, requested: str, guard: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move gallery from {current} to {requested}: {guard}",
            guard=guard,
            details={"current_status": current, "requested_status": requested},
        )


class GalleryNotEditable(GalleryWorkflowError):
    code = "GALLERY_NOT_EDITABLE"
    status_code = 409

    def __init__(self, gallery_id: UUID, status: str, is_locked: bool) -> None:
        guard = "gallery_locked" if is_locked else "gallery_not_open"
        super().__init__(
            "This gallery can no longer be edited",
            guard=guard,
            details={
                "gallery_id": str(gallery_id),
                "status": status,
                "is_locked": is_locked,
            },
        )


class StaleState(GalleryWorkflowError):
    """The stored selection no longer matches what the caller last saw."""

    code = "STALE_STATE"
    status_code = 409

    def __init__(self, photo_id: UUID, expected: bool) -> None:
        super().__init__(
            "Photo selection changed in another session; reload and try again",
            guard="expected_current_state",
            details={"photo_id": str(photo_id), "expected": expected},
        )


class EmptySelection(GalleryWorkflowError):
    code = "EMPTY_SELECTION"
    status_code = 422

    def __init__(self) -> None:
        super().__init__(
            "Select at least one photo before finalizing",
            guard="selection_not_empty",
        )


class ForeignPhoto(GalleryWorkflowError):
    code = "FOREIGN_PHOTO"
    status_code = 422

    def __init__(self, gallery_id: UUID, photo_ids: list[UUID]) -> None:
        super().__init__(
            "Some selected photos do not belong to this gallery",
            guard="photos_belong_to_gallery",
            details={
                "gallery_id": str(gallery_id),
                "photo_ids": sorted(str(photo_id) for photo_id in photo_ids),
            },
        )


class AddOnOnUnselectedPhoto(GalleryWorkflowError):
    code = "ADD_ON_ON_UNSELECTED_PHOTO"
    status_code = 422

    def __init__(self, add_on: str, photo_ids: list[UUID]) -> None:
        super().__init__(
            f"{add_on} was requested for photos that are not selected",
            guard="add_on_requires_selection",
            details={
                "add_on": add_on,
                "photo_ids": sorted(str(photo_id) for photo_id in photo_ids),
            },
        )


class StagingStyleWithoutStaging(GalleryWorkflowError):
    code = "STAGING_STYLE_WITHOUT_STAGING"
    status_code = 422

    def __init__(self, photo_id: UUID) -> None:
        super().__init__(
            "A staging style needs virtual staging requested for the photo",
            guard="staging_style_requires_staging",
            details={"photo_id": str(photo_id)},
        )


class NotEligible(GalleryWorkflowError):
    """A reopen request was filed for a gallery that is not finalized."""

    code = "NOT_ELIGIBLE"
    status_code = 409

    def __init__(self, gallery_id: UUID, status: str) -> None:
        super().__init__(
            f"Galleries in status {status} cannot be reopened",
            guard="gallery_finalized",
            details={"gallery_id": str(gallery_id), "status": status},
        )


class ReopenAlreadyPending(GalleryWorkflowError):
    code = "REOPEN_ALREADY_PENDING"
    status_code = 409

    def __init__(self, gallery_id: UUID, request_id: UUID) -> None:
        super().__init__(
            "A reopen request for this gallery is already waiting for a decision",
            guard="single_pending_request",
            details={"gallery_id": str(gallery_id), "request_id": str(request_id)},
        )


class AlreadyResolved(GalleryWorkflowError):
    code = "ALREADY_RESOLVED"
    status_code = 409

    def __init__(self, request_id: UUID, status: str) -> None:
        super().__init__(
            f"Reopen request was already {status}",
            guard="request_pending",
            details={"request_id": str(request_id), "status": status},
        )


class NotFoundError(GalleryWorkflowError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, identifier: object) -> None:
        super().__init__(
            f"{entity} '{identifier}' not found",
            guard="exists",
            details={"entity": entity, "id": str(identifier)},
        )


class GalleryNotFound(NotFoundError):
    def __init__(self, identifier: object) -> None:
        super().__init__("Gallery", identifier)


class PhotoNotFound(NotFoundError):
    def __init__(self, photo_id: UUID) -> None:
        super().__init__("Photo", photo_id)


class ReopenRequestNotFound(NotFoundError):
    def __init__(self, request_id: UUID) -> None:
        super().__init__("Reopen request", request_id)


class StorageError(GalleryWorkflowError):
    """File storage rejected an upload; nothing was committed."""

    code = "STORAGE_ERROR"
    status_code = 502

    def __init__(self, message: str) -> None:
        super().__init__(message, guard="reference_file_stored")
