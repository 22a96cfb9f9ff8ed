"""Supabase repository for finalize comments and staging references."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from gallery_workflow.services.finalization import FeedbackRepository


@dataclass
class SupabaseFeedbackRepository(FeedbackRepository):
    """Supabase-backed feedback and staging reference storage."""

    client: Client

    def create_feedback(
        self, gallery_id: UUID, message: str, author_id: UUID | None = None
    ) -> UUID:
        """Insert a gallery_feedback row and return its id."""
        response = (
            self.client.table("gallery_feedback")
            .insert(
                {
                    "gallery_id": str(gallery_id),
                    "author_user_id": _optional_id(author_id),
                    "message": message,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to store gallery feedback")
        return UUID(str(response.data[0]["id"]))

    def delete_feedback(self, feedback_id: UUID) -> None:
        """Delete a gallery_feedback row."""
        self.client.table("gallery_feedback").delete().eq(
            "id", str(feedback_id)
        ).execute()

    def create_staging_reference(
        self,
        photo_id: UUID,
        file_url: str,
        notes: str | None,
        uploader_id: UUID | None = None,
    ) -> UUID:
        """Insert a staging_references row and return its id."""
        response = (
            self.client.table("staging_references")
            .insert(
                {
                    "photo_id": str(photo_id),
                    "uploader_user_id": _optional_id(uploader_id),
                    "file_url": file_url,
                    "notes": notes,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to store staging reference")
        return UUID(str(response.data[0]["id"]))

    def delete_staging_reference(self, reference_id: UUID) -> None:
        """Delete a staging_references row."""
        self.client.table("staging_references").delete().eq(
            "id", str(reference_id)
        ).execute()


def _optional_id(value: UUID | None) -> str | None:
    return str(value) if value is not None else None
