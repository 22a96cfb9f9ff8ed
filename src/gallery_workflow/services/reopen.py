"""Arbitration of client requests to reopen a finalized gallery."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from gallery_workflow.domain.errors import (
    AlreadyResolved,
    IllegalTransition,
    NotEligible,
    ReopenAlreadyPending,
    ReopenRequestNotFound,
)
from gallery_workflow.domain.galleries import GalleryStatus
from gallery_workflow.domain.reopen import ReopenRequestRecord, ReopenStatus
from gallery_workflow.services.lifecycle import (
    REOPENABLE_STATUSES,
    GalleryLifecycleController,
)

logger = logging.getLogger(__name__)


class ReopenRequestRepository(Protocol):
    """Persistence interface for reopen requests."""

    def create_request(
        self, gallery_id: UUID, message: str | None, user_id: UUID | None = None
    ) -> ReopenRequestRecord:
        """Create a pending request filed by user_id and return it."""

    def get_request(self, request_id: UUID) -> ReopenRequestRecord | None:
        """Return a request by id, if present."""

    def get_pending_request(self, gallery_id: UUID) -> ReopenRequestRecord | None:
        """Return the gallery's pending request, if any."""

    def resolve_request(  # noqa: PLR0913
        self,
        request_id: UUID,
        expected: ReopenStatus,
        target: ReopenStatus,
        resolved_at: datetime | None,
        resolved_by: str | None,
    ) -> ReopenRequestRecord | None:
        """Move a request from expected to target status.

        Returns the updated request, or None when the stored status differed.
        """

    def list_requests(
        self, gallery_id: UUID | None = None, status: ReopenStatus | None = None
    ) -> list[ReopenRequestRecord]:
        """Return requests, newest first."""


@dataclass
class ReopenArbitrator:
    """Creates and resolves reopen requests."""

    repository: ReopenRequestRepository
    controller: GalleryLifecycleController

    def request_reopen(
        self,
        gallery_id: UUID,
        message: str | None = None,
        user_id: UUID | None = None,
    ) -> ReopenRequestRecord:
        """File a reopen request for a finalized gallery.

        A second request while one is pending is refused.
        """
        gallery = self.controller.get_gallery(gallery_id)
        if gallery.status not in REOPENABLE_STATUSES:
            raise NotEligible(gallery.id, gallery.status)
        pending = self.repository.get_pending_request(gallery.id)
        if pending is not None:
            raise ReopenAlreadyPending(gallery.id, pending.id)
        cleaned = message.strip() if message else None
        request = self.repository.create_request(
            gallery.id, cleaned or None, user_id=user_id
        )
        logger.info(
            "Reopen requested",
            extra={"gallery_id": str(gallery.id), "request_id": str(request.id)},
        )
        return request

    async def resolve(
        self,
        request_id: UUID,
        decision: ReopenStatus,
        resolved_by: str | None = None,
    ) -> ReopenRequestRecord:
        """Approve or reject a pending request.

        Only one decision can win; later calls raise AlreadyResolved. An
        approval reopens the gallery once.
        """
        if decision not in {ReopenStatus.APPROVED, ReopenStatus.REJECTED}:
            raise ValueError(f"Unsupported decision: {decision}")
        current = self.repository.get_request(request_id)
        if current is None:
            raise ReopenRequestNotFound(request_id)
        resolved = self.repository.resolve_request(
            request_id,
            expected=ReopenStatus.PENDING,
            target=decision,
            resolved_at=datetime.now(tz=UTC),
            resolved_by=resolved_by,
        )
        if resolved is None:
            latest = self.repository.get_request(request_id) or current
            raise AlreadyResolved(request_id, latest.status)

        if decision == ReopenStatus.APPROVED:
            await self._reopen_gallery(resolved)
        logger.info(
            "Reopen request resolved",
            extra={"request_id": str(request_id), "decision": decision.value},
        )
        return resolved

    def list_requests(
        self, gallery_id: UUID | None = None
    ) -> list[ReopenRequestRecord]:
        return self.repository.list_requests(gallery_id=gallery_id)

    def pending_requests(self) -> list[ReopenRequestRecord]:
        return self.repository.list_requests(status=ReopenStatus.PENDING)

    async def _reopen_gallery(self, request: ReopenRequestRecord) -> None:
        try:
            await self.controller.reopen(
                request.gallery_id, reason="reopen_request", request_id=request.id
            )
        except IllegalTransition as exc:
            if exc.current == GalleryStatus.OPEN:
                # Already reopened by an administrator.
                return
            self._revert(request)
            raise
        except Exception:
            self._revert(request)
            raise

    def _revert(self, request: ReopenRequestRecord) -> None:
        try:
            self.repository.resolve_request(
                request.id,
                expected=ReopenStatus.APPROVED,
                target=ReopenStatus.PENDING,
                resolved_at=None,
                resolved_by=None,
            )
        except Exception:
            logger.exception(
                "Failed to revert reopen request", extra={"request_id": str(request.id)}
            )
