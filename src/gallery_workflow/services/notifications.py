"""Webhook notifications at lifecycle boundaries."""

import logging
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from gallery_workflow.domain.events import GalleryTransitioned

logger = logging.getLogger(__name__)

NOTIFY_EVENTS = {
    "send": "gallery_sent",
    "review": "gallery_reviewed",
    "deliver": "gallery_delivered",
}


class NotificationDispatcher(Protocol):
    """Interface for best-effort notification delivery."""

    async def dispatch(self, event: GalleryTransitioned) -> None:
        """Notify external systems about a committed transition."""


class WebhookClient(Protocol):
    """Interface for posting JSON webhooks."""

    async def post_json(self, url: str, payload: dict[str, object]) -> int:
        """Post the payload and return the response status code."""


class WebhookLogRepository(Protocol):
    """Persistence interface for webhook attempts."""

    def create_log(
        self,
        gallery_id: UUID,
        webhook_type: str,
        status: str,
        response_body: dict[str, object],
    ) -> None:
        """Record one webhook attempt."""


def build_webhook_payload(event: GalleryTransitioned) -> dict[str, object]:
    """Build the outbound payload for a notification event."""
    payload: dict[str, object] = {
        "event_id": str(event.event_id),
        "timestamp": event.occurred_at.isoformat(),
        "event": event.name,
        "event_type": NOTIFY_EVENTS.get(event.name, event.name),
        "gallery_id": str(event.gallery_id),
        "gallery_name": event.gallery.name,
        "gallery_slug": event.gallery.slug,
        "package_target_count": event.gallery.package_target_count,
        "client_emails": list(event.client_emails),
        "download_link": event.download_link or "",
    }
    for key, value in event.details.items():
        payload.setdefault(key, value)
    return payload


@dataclass
class WebhookNotificationDispatcher:
    """Posts send/review/deliver events to their configured webhook URLs.

    Never raises: a failed or unconfigured webhook is logged and recorded.
    """

    client: WebhookClient
    log_repository: WebhookLogRepository
    webhook_urls: dict[str, str | None] = field(default_factory=dict)

    async def __call__(self, event: GalleryTransitioned) -> None:
        await self.dispatch(event)

    async def dispatch(self, event: GalleryTransitioned) -> None:
        """Send the webhook for a notification event."""
        if event.name not in NOTIFY_EVENTS:
            return
        url = self.webhook_urls.get(event.name)
        if not url:
            logger.warning(
                "Webhook URL not configured", extra={"webhook_type": event.name}
            )
            self._record(event, "skipped", {"reason": "webhook_url_missing"})
            return

        payload = build_webhook_payload(event)
        try:
            status_code = await self.client.post_json(url, payload)
        except Exception as exc:
            logger.exception(
                "Webhook delivery failed",
                extra={"webhook_type": event.name, "gallery_id": str(event.gallery_id)},
            )
            self._record(
                event,
                "failed",
                {
                    "error": f"{type(exc).__name__}: {exc}",
                    "event_id": str(event.event_id),
                },
            )
            return

        status = "success" if 200 <= status_code < 300 else "failed"  # noqa: PLR2004
        self._record(
            event, status, {"status": status_code, "event_id": str(event.event_id)}
        )

    def _record(
        self, event: GalleryTransitioned, status: str, body: dict[str, object]
    ) -> None:
        try:
            self.log_repository.create_log(
                gallery_id=event.gallery_id,
                webhook_type=event.name,
                status=status,
                response_body=body,
            )
        except Exception:
            logger.exception(
                "Failed to record webhook attempt",
                extra={"gallery_id": str(event.gallery_id)},
            )
