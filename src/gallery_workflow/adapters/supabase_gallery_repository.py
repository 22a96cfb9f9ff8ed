"""Supabase-backed gallery repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from gallery_workflow.adapters.supabase_common import (
    parse_datetime,
    serialize_changes,
    utc_now_iso,
)
from gallery_workflow.domain.galleries import GalleryRecord, GalleryStatus
from gallery_workflow.services.lifecycle import GalleryRepository

_GALLERY_COLUMNS = (
    "id, slug, name, status, package_target_count, is_locked, "
    "express_delivery_requested, sent_at, reviewed_at, delivered_at, "
    "final_delivery_link"
)


@dataclass
class SupabaseGalleryRepository(GalleryRepository):
    """Supabase implementation for galleries."""

    client: Client

    def get_gallery(self, gallery_id: UUID) -> GalleryRecord | None:
        """Return a gallery by id, if present."""
        response = (
            self.client.table("galleries")
            .select(_GALLERY_COLUMNS)
            .eq("id", str(gallery_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_gallery(response.data[0])

    def get_gallery_by_slug(self, slug: str) -> GalleryRecord | None:
        """Return a gallery by slug, if present."""
        response = (
            self.client.table("galleries")
            .select(_GALLERY_COLUMNS)
            .eq("slug", slug)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_gallery(response.data[0])

    def transition_status(
        self,
        gallery_id: UUID,
        expected: GalleryStatus,
        target: GalleryStatus,
        changes: dict[str, object],
    ) -> GalleryRecord | None:
        """Update status with a guard on the current status."""
        payload = serialize_changes(changes)
        payload["status"] = target.value
        payload["updated_at"] = utc_now_iso()
        response = (
            self.client.table("galleries")
            .update(payload)
            .eq("id", str(gallery_id))
            .eq("status", expected.value)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_gallery(response.data[0])

    def set_locked(
        self, gallery_id: UUID, status: GalleryStatus, locked: bool
    ) -> GalleryRecord | None:
        """Update is_locked with guards on status and the current lock."""
        response = (
            self.client.table("galleries")
            .update({"is_locked": locked, "updated_at": utc_now_iso()})
            .eq("id", str(gallery_id))
            .eq("status", status.value)
            .eq("is_locked", not locked)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_gallery(response.data[0])

    def list_client_emails(self, gallery_id: UUID) -> list[str]:
        """Return client email addresses linked to the gallery."""
        response = (
            self.client.table("gallery_clients")
            .select("clients(email)")
            .eq("gallery_id", str(gallery_id))
            .execute()
        )
        emails: list[str] = []
        for row in response.data or []:
            clients = row.get("clients")
            entries = clients if isinstance(clients, list) else [clients]
            for entry in entries:
                if isinstance(entry, dict):
                    email = entry.get("email")
                    if isinstance(email, str) and email and email not in emails:
                        emails.append(email)
        return emails

    def count_delivery_files(self, gallery_id: UUID) -> int:
        """Return the number of uploaded delivery files."""
        response = (
            self.client.table("delivery_files")
            .select("id")
            .eq("gallery_id", str(gallery_id))
            .execute()
        )
        return len(response.data or [])


def _row_to_gallery(row: dict[str, object]) -> GalleryRecord:
    return GalleryRecord(
        id=UUID(str(row["id"])),
        slug=str(row["slug"]),
        name=str(row.get("name") or ""),
        status=GalleryStatus(row["status"]),
        package_target_count=int(row.get("package_target_count") or 0),
        is_locked=bool(row.get("is_locked")),
        express_delivery_requested=bool(row.get("express_delivery_requested")),
        sent_at=parse_datetime(row.get("sent_at")),
        reviewed_at=parse_datetime(row.get("reviewed_at")),
        delivered_at=parse_datetime(row.get("delivered_at")),
        final_delivery_link=row.get("final_delivery_link") or None,
    )
