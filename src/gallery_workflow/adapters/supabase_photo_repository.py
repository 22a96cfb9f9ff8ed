"""Supabase-backed photo repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from gallery_workflow.adapters.supabase_common import utc_now_iso
from gallery_workflow.domain.finalize import PhotoChoice
from gallery_workflow.domain.galleries import PhotoRecord
from gallery_workflow.services.selection import PhotoRepository

_PHOTO_COLUMNS = (
    "id, gallery_id, filename, upload_order, is_selected, staging_requested, "
    "staging_style, blue_hour_requested, client_comment"
)
_EDITABLE_FIELDS = {
    "client_comment",
    "staging_requested",
    "staging_style",
    "blue_hour_requested",
}


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for gallery photos."""

    client: Client

    def get_photo(self, photo_id: UUID) -> PhotoRecord | None:
        """Return a photo by id, if present."""
        response = (
            self.client.table("photos")
            .select(_PHOTO_COLUMNS)
            .eq("id", str(photo_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_photo(response.data[0])

    def list_photos(self, gallery_id: UUID) -> list[PhotoRecord]:
        """Return photos ordered by upload order."""
        response = (
            self.client.table("photos")
            .select(_PHOTO_COLUMNS)
            .eq("gallery_id", str(gallery_id))
            .order("upload_order")
            .execute()
        )
        return [_row_to_photo(row) for row in response.data or []]

    def set_selection(
        self, photo_id: UUID, value: bool, expected: bool | None = None
    ) -> PhotoRecord | None:
        """Write is_selected, optionally guarded by the expected value."""
        query = (
            self.client.table("photos")
            .update({"is_selected": value, "updated_at": utc_now_iso()})
            .eq("id", str(photo_id))
        )
        if expected is not None:
            query = query.eq("is_selected", expected)
        response = query.execute()
        if not response.data:
            return None
        return _row_to_photo(response.data[0])

    def update_photo(self, photo_id: UUID, changes: dict[str, object]) -> None:
        """Update client-editable fields."""
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields are not client-editable: {sorted(unknown)}")
        payload = dict(changes)
        payload["updated_at"] = utc_now_iso()
        self.client.table("photos").update(payload).eq("id", str(photo_id)).execute()

    def apply_choices(self, choices: list[PhotoChoice]) -> None:
        """Write selection and add-on fields photo by photo."""
        for choice in choices:
            self.client.table("photos").update(
                {
                    "is_selected": choice.is_selected,
                    "staging_requested": choice.staging_requested,
                    "staging_style": choice.staging_style,
                    "blue_hour_requested": choice.blue_hour_requested,
                    "updated_at": utc_now_iso(),
                }
            ).eq("id", str(choice.photo_id)).execute()


def _row_to_photo(row: dict[str, object]) -> PhotoRecord:
    return PhotoRecord(
        id=UUID(str(row["id"])),
        gallery_id=UUID(str(row["gallery_id"])),
        filename=str(row.get("filename") or ""),
        upload_order=int(row.get("upload_order") or 0),
        is_selected=bool(row.get("is_selected")),
        staging_requested=bool(row.get("staging_requested")),
        staging_style=row.get("staging_style") or None,
        blue_hour_requested=bool(row.get("blue_hour_requested")),
        client_comment=row.get("client_comment") or None,
    )
