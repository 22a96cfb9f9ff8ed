"""Supabase repository for webhook attempts."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from gallery_workflow.services.notifications import WebhookLogRepository


@dataclass
class SupabaseWebhookLogRepository(WebhookLogRepository):
    """Supabase-backed webhook log."""

    client: Client

    def create_log(
        self,
        gallery_id: UUID,
        webhook_type: str,
        status: str,
        response_body: dict[str, object],
    ) -> None:
        """Insert a webhook_logs row."""
        self.client.table("webhook_logs").insert(
            {
                "gallery_id": str(gallery_id),
                "type": webhook_type,
                "status": status,
                "response_body": response_body,
            }
        ).execute()
