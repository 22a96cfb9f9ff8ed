"""Gallery lifecycle state machine."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

import httpx

from gallery_workflow.domain.errors import (
    GalleryNotEditable,
    GalleryNotFound,
    IllegalTransition,
)
from gallery_workflow.domain.events import GalleryTransitioned
from gallery_workflow.domain.galleries import GalleryRecord, GalleryStatus
from gallery_workflow.services.events import DomainEventBus

logger = logging.getLogger(__name__)

# (from, to) -> name of the event emitted once the transition is committed.
TRANSITIONS: dict[tuple[GalleryStatus, GalleryStatus], str] = {
    (GalleryStatus.PLANNING, GalleryStatus.OPEN): "send",
    (GalleryStatus.OPEN, GalleryStatus.CLOSED): "review",
    (GalleryStatus.CLOSED, GalleryStatus.PROCESSING): "processing",
    (GalleryStatus.PROCESSING, GalleryStatus.DELIVERED): "deliver",
    (GalleryStatus.CLOSED, GalleryStatus.OPEN): "reopen",
    (GalleryStatus.PROCESSING, GalleryStatus.OPEN): "reopen",
    (GalleryStatus.DELIVERED, GalleryStatus.OPEN): "reopen",
}

REOPENABLE_STATUSES = frozenset(
    {GalleryStatus.CLOSED, GalleryStatus.PROCESSING, GalleryStatus.DELIVERED}
)

_CLIENT_VIEW_MODES = {
    GalleryStatus.OPEN: "selection",
    GalleryStatus.CLOSED: "waiting",
    GalleryStatus.PROCESSING: "waiting",
    GalleryStatus.DELIVERED: "download",
}


class GalleryRepository(Protocol):
    """Persistence interface for galleries."""

    def get_gallery(self, gallery_id: UUID) -> GalleryRecord | None:
        """Return a gallery by id, if present."""

    def get_gallery_by_slug(self, slug: str) -> GalleryRecord | None:
        """Return a gallery by its public slug, if present."""

    def transition_status(
        self,
        gallery_id: UUID,
        expected: GalleryStatus,
        target: GalleryStatus,
        changes: dict[str, object],
    ) -> GalleryRecord | None:
        """Set status to target only if it still equals expected.

        Returns the updated gallery, or None when the stored status differed.
        """

    def set_locked(
        self, gallery_id: UUID, status: GalleryStatus, locked: bool
    ) -> GalleryRecord | None:
        """Flip is_locked to locked while the gallery is still in status.

        Returns the updated gallery, or None when the status differed or the
        lock already had the requested value.
        """

    def list_client_emails(self, gallery_id: UUID) -> list[str]:
        """Return the recipient addresses of the gallery's clients."""

    def count_delivery_files(self, gallery_id: UUID) -> int:
        """Return how many final files were uploaded for the gallery."""


def validate_transition(current: GalleryStatus, target: GalleryStatus) -> str:
    """Return the event name for a legal transition or raise IllegalTransition."""
    event_name = TRANSITIONS.get((current, target))
    if event_name is None:
        raise IllegalTransition(current, target, "transition_table")
    return event_name


def client_view_mode(status: GalleryStatus) -> str | None:
    """Return how the client page renders a gallery, or None if hidden."""
    return _CLIENT_VIEW_MODES.get(status)


@dataclass
class GalleryLifecycleController:
    """Single authority for gallery status changes."""

    repository: GalleryRepository
    event_bus: DomainEventBus
    public_base_url: str

    def get_gallery(self, gallery_id: UUID) -> GalleryRecord:
        """Return a gallery or raise GalleryNotFound."""
        gallery = self.repository.get_gallery(gallery_id)
        if gallery is None:
            raise GalleryNotFound(gallery_id)
        return gallery

    def get_client_gallery(self, slug: str) -> GalleryRecord:
        """Return a gallery visible to clients; planning galleries are hidden."""
        gallery = self.repository.get_gallery_by_slug(slug)
        if gallery is None or client_view_mode(gallery.status) is None:
            raise GalleryNotFound(slug)
        return gallery

    def gallery_link(self, gallery: GalleryRecord) -> str:
        """Return the client-facing URL of a gallery."""
        return f"{self.public_base_url.rstrip('/')}/gallery/{gallery.slug}"

    def claim_for_finalize(self, gallery_id: UUID) -> GalleryRecord:
        """Lock an Open gallery so only one finalize can write its package.

        Client edits are refused while the claim is held. Raises
        GalleryNotEditable when the gallery left Open or is already claimed.
        """
        claimed = self.repository.set_locked(gallery_id, GalleryStatus.OPEN, True)
        if claimed is None:
            current = self.get_gallery(gallery_id)
            raise GalleryNotEditable(current.id, current.status, True)
        logger.info(
            "Gallery claimed for finalize", extra={"gallery_id": str(gallery_id)}
        )
        return claimed

    def release_finalize_claim(self, gallery_id: UUID) -> bool:
        """Unlock a claimed gallery that is still Open.

        Returns False when the gallery has already moved on.
        """
        released = self.repository.set_locked(gallery_id, GalleryStatus.OPEN, False)
        return released is not None

    async def send(self, gallery_id: UUID) -> GalleryRecord:
        """Send a planned gallery to its clients (Planning -> Open)."""
        gallery = self.get_gallery(gallery_id)
        if gallery.status != GalleryStatus.PLANNING:
            raise IllegalTransition(
                gallery.status, GalleryStatus.OPEN, "gallery_planning"
            )
        emails = self._require_recipients(gallery, GalleryStatus.OPEN)
        updated = self._apply(
            gallery,
            GalleryStatus.OPEN,
            {"sent_at": _now(), "is_locked": False},
        )
        await self._emit(
            "send",
            gallery,
            updated,
            client_emails=emails,
            download_link=self.gallery_link(updated),
        )
        return updated

    async def close_for_review(
        self,
        gallery_id: UUID,
        express_delivery: bool = False,
        details: dict[str, object] | None = None,
    ) -> GalleryRecord:
        """Lock the client's package (Open -> Closed)."""
        gallery = self.get_gallery(gallery_id)
        validate_transition(gallery.status, GalleryStatus.CLOSED)
        updated = self._apply(
            gallery,
            GalleryStatus.CLOSED,
            {
                "reviewed_at": _now(),
                "is_locked": True,
                "express_delivery_requested": express_delivery,
            },
        )
        await self._emit(
            "review",
            gallery,
            updated,
            client_emails=self.repository.list_client_emails(gallery_id),
            download_link=self.gallery_link(updated),
            details=details,
        )
        return updated

    async def open_review(self, gallery_id: UUID) -> GalleryRecord:
        """Enter the admin review view; Closed advances to Processing.

        Re-entering the view while Processing (or after delivery) is a no-op,
        including when a concurrent request won the race.
        """
        gallery = self.get_gallery(gallery_id)
        if gallery.status in {GalleryStatus.PROCESSING, GalleryStatus.DELIVERED}:
            return gallery
        if gallery.status != GalleryStatus.CLOSED:
            raise IllegalTransition(
                gallery.status, GalleryStatus.PROCESSING, "gallery_finalized"
            )
        updated = self.repository.transition_status(
            gallery.id, GalleryStatus.CLOSED, GalleryStatus.PROCESSING, {}
        )
        if updated is None:
            current = self.get_gallery(gallery_id)
            if current.status in {GalleryStatus.PROCESSING, GalleryStatus.DELIVERED}:
                return current
            raise IllegalTransition(
                current.status, GalleryStatus.PROCESSING, "concurrent_transition"
            )
        logger.info(
            "Gallery transitioned",
            extra={"gallery_id": str(gallery_id), "status": updated.status.value},
        )
        await self._emit("processing", gallery, updated)
        return updated

    async def deliver(
        self, gallery_id: UUID, final_delivery_link: str | None = None
    ) -> GalleryRecord:
        """Deliver final files (Processing -> Delivered)."""
        gallery = self.get_gallery(gallery_id)
        validate_transition(gallery.status, GalleryStatus.DELIVERED)
        link = None
        if final_delivery_link is not None and final_delivery_link.strip():
            link = final_delivery_link.strip()
            if not _is_http_url(link):
                raise IllegalTransition(
                    gallery.status, GalleryStatus.DELIVERED, "valid_delivery_link"
                )
        if link is None and self.repository.count_delivery_files(gallery_id) == 0:
            raise IllegalTransition(
                gallery.status,
                GalleryStatus.DELIVERED,
                "final_files_or_link_required",
            )
        emails = self._require_recipients(gallery, GalleryStatus.DELIVERED)
        updated = self._apply(
            gallery,
            GalleryStatus.DELIVERED,
            {"delivered_at": _now(), "final_delivery_link": link},
        )
        await self._emit(
            "deliver",
            gallery,
            updated,
            client_emails=emails,
            download_link=link or self.gallery_link(updated),
        )
        return updated

    async def resend_delivery(self, gallery_id: UUID) -> GalleryRecord:
        """Announce an existing delivery again without changing status."""
        gallery = self.get_gallery(gallery_id)
        if gallery.status != GalleryStatus.DELIVERED:
            raise IllegalTransition(
                gallery.status, GalleryStatus.DELIVERED, "gallery_delivered"
            )
        emails = self._require_recipients(gallery, GalleryStatus.DELIVERED)
        await self._emit(
            "deliver",
            gallery,
            gallery,
            client_emails=emails,
            download_link=gallery.final_delivery_link or self.gallery_link(gallery),
            details={"resend": True},
        )
        return gallery

    async def reopen(
        self,
        gallery_id: UUID,
        reason: str = "admin_override",
        request_id: UUID | None = None,
    ) -> GalleryRecord:
        """Unlock a finalized gallery (Closed/Processing/Delivered -> Open).

        Prior selections are kept so the client can adjust them.
        """
        gallery = self.get_gallery(gallery_id)
        if gallery.status not in REOPENABLE_STATUSES:
            raise IllegalTransition(
                gallery.status, GalleryStatus.OPEN, "gallery_finalized"
            )
        updated = self._apply(gallery, GalleryStatus.OPEN, {"is_locked": False})
        details: dict[str, object] = {"reason": reason}
        if request_id is not None:
            details["request_id"] = str(request_id)
        await self._emit("reopen", gallery, updated, details=details)
        return updated

    def _require_recipients(
        self, gallery: GalleryRecord, target: GalleryStatus
    ) -> list[str]:
        emails = self.repository.list_client_emails(gallery.id)
        if not emails:
            raise IllegalTransition(gallery.status, target, "client_recipient_required")
        return emails

    def _apply(
        self,
        gallery: GalleryRecord,
        target: GalleryStatus,
        changes: dict[str, object],
    ) -> GalleryRecord:
        updated = self.repository.transition_status(
            gallery.id, gallery.status, target, changes
        )
        if updated is None:
            current = self.repository.get_gallery(gallery.id)
            current_status = current.status if current else gallery.status
            raise IllegalTransition(current_status, target, "concurrent_transition")
        logger.info(
            "Gallery transitioned",
            extra={
                "gallery_id": str(gallery.id),
                "from_status": gallery.status.value,
                "status": updated.status.value,
            },
        )
        return updated

    async def _emit(  # noqa: PLR0913
        self,
        name: str,
        before: GalleryRecord,
        after: GalleryRecord,
        client_emails: list[str] | None = None,
        download_link: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        await self.event_bus.publish(
            GalleryTransitioned(
                name=name,
                gallery=after,
                from_status=before.status,
                to_status=after.status,
                client_emails=client_emails or [],
                download_link=download_link,
                details=details or {},
            )
        )


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _is_http_url(value: str) -> bool:
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL:
        return False
    return url.scheme in {"http", "https"} and bool(url.host)
