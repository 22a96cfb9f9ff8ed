"""Supabase-backed reopen request repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from gallery_workflow.adapters.supabase_common import parse_datetime
from gallery_workflow.domain.reopen import ReopenRequestRecord, ReopenStatus
from gallery_workflow.services.reopen import ReopenRequestRepository

_REQUEST_COLUMNS = (
    "id, gallery_id, user_id, status, message, created_at, resolved_at, "
    "resolved_by"
)


@dataclass
class SupabaseReopenRequestRepository(ReopenRequestRepository):
    """Supabase implementation for reopen requests."""

    client: Client

    def create_request(
        self, gallery_id: UUID, message: str | None, user_id: UUID | None = None
    ) -> ReopenRequestRecord:
        """Insert a pending request and return it."""
        response = (
            self.client.table("reopen_requests")
            .insert(
                {
                    "gallery_id": str(gallery_id),
                    "user_id": str(user_id) if user_id is not None else None,
                    "message": message,
                    "status": ReopenStatus.PENDING.value,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create reopen request")
        return _row_to_request(response.data[0])

    def get_request(self, request_id: UUID) -> ReopenRequestRecord | None:
        """Return a request by id, if present."""
        response = (
            self.client.table("reopen_requests")
            .select(_REQUEST_COLUMNS)
            .eq("id", str(request_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_request(response.data[0])

    def get_pending_request(self, gallery_id: UUID) -> ReopenRequestRecord | None:
        """Return the gallery's pending request, if any."""
        response = (
            self.client.table("reopen_requests")
            .select(_REQUEST_COLUMNS)
            .eq("gallery_id", str(gallery_id))
            .eq("status", ReopenStatus.PENDING.value)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_request(response.data[0])

    def resolve_request(  # noqa: PLR0913
        self,
        request_id: UUID,
        expected: ReopenStatus,
        target: ReopenStatus,
        resolved_at: datetime | None,
        resolved_by: str | None,
    ) -> ReopenRequestRecord | None:
        """Move a request between statuses with a guard on the current one."""
        response = (
            self.client.table("reopen_requests")
            .update(
                {
                    "status": target.value,
                    "resolved_at": resolved_at.isoformat() if resolved_at else None,
                    "resolved_by": resolved_by,
                }
            )
            .eq("id", str(request_id))
            .eq("status", expected.value)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_request(response.data[0])

    def list_requests(
        self, gallery_id: UUID | None = None, status: ReopenStatus | None = None
    ) -> list[ReopenRequestRecord]:
        """Return requests, newest first."""
        query = self.client.table("reopen_requests").select(_REQUEST_COLUMNS)
        if gallery_id is not None:
            query = query.eq("gallery_id", str(gallery_id))
        if status is not None:
            query = query.eq("status", status.value)
        response = query.order("created_at", desc=True).execute()
        return [_row_to_request(row) for row in response.data or []]


def _row_to_request(row: dict[str, object]) -> ReopenRequestRecord:
    return ReopenRequestRecord(
        id=UUID(str(row["id"])),
        gallery_id=UUID(str(row["gallery_id"])),
        user_id=UUID(str(row["user_id"])) if row.get("user_id") else None,
        status=ReopenStatus(row["status"]),
        message=row.get("message") or None,
        created_at=parse_datetime(row.get("created_at")) or datetime.now(tz=UTC),
        resolved_at=parse_datetime(row.get("resolved_at")),
        resolved_by=row.get("resolved_by") or None,
    )
