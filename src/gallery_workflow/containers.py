"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from gallery_workflow.adapters.supabase_feedback_repository import (
    SupabaseFeedbackRepository,
)
from gallery_workflow.adapters.supabase_file_storage import SupabaseFileStorage
from gallery_workflow.adapters.supabase_gallery_repository import (
    SupabaseGalleryRepository,
)
from gallery_workflow.adapters.supabase_photo_repository import SupabasePhotoRepository
from gallery_workflow.adapters.supabase_reopen_repository import (
    SupabaseReopenRequestRepository,
)
from gallery_workflow.adapters.supabase_webhook_log_repository import (
    SupabaseWebhookLogRepository,
)
from gallery_workflow.adapters.webhook_client import HttpxWebhookClient
from gallery_workflow.config import Settings
from gallery_workflow.services.events import DomainEventBus, RecordingSubscriber
from gallery_workflow.services.finalization import FinalizationCoordinator
from gallery_workflow.services.lifecycle import GalleryLifecycleController
from gallery_workflow.services.notifications import WebhookNotificationDispatcher
from gallery_workflow.services.reopen import ReopenArbitrator
from gallery_workflow.services.selection import SelectionLedger


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    event_bus: DomainEventBus
    activity: RecordingSubscriber
    lifecycle_controller: GalleryLifecycleController
    selection_ledger: SelectionLedger
    finalization_coordinator: FinalizationCoordinator
    reopen_arbitrator: ReopenArbitrator
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    gallery_repository = SupabaseGalleryRepository(supabase_client)
    photo_repository = SupabasePhotoRepository(supabase_client)
    reopen_repository = SupabaseReopenRequestRepository(supabase_client)
    feedback_repository = SupabaseFeedbackRepository(supabase_client)
    webhook_log_repository = SupabaseWebhookLogRepository(supabase_client)
    storage = SupabaseFileStorage(supabase_client, resolved_settings.storage_bucket)

    webhook_client = HttpxWebhookClient.create(
        timeout=resolved_settings.webhook_timeout_seconds,
        max_attempts=resolved_settings.webhook_max_attempts,
        backoff_seconds=resolved_settings.webhook_backoff_seconds,
    )
    event_bus = DomainEventBus()
    activity = RecordingSubscriber()
    event_bus.subscribe(activity)
    event_bus.subscribe(
        WebhookNotificationDispatcher(
            client=webhook_client,
            log_repository=webhook_log_repository,
            webhook_urls=resolved_settings.webhook_urls(),
        ),
        background=True,
    )

    lifecycle_controller = GalleryLifecycleController(
        repository=gallery_repository,
        event_bus=event_bus,
        public_base_url=resolved_settings.public_base_url,
    )
    selection_ledger = SelectionLedger(
        photo_repository=photo_repository,
        gallery_repository=gallery_repository,
    )
    finalization_coordinator = FinalizationCoordinator(
        controller=lifecycle_controller,
        photo_repository=photo_repository,
        feedback_repository=feedback_repository,
        storage=storage,
    )
    reopen_arbitrator = ReopenArbitrator(
        repository=reopen_repository,
        controller=lifecycle_controller,
    )

    async def close_resources() -> None:
        await event_bus.drain()
        await webhook_client.close()

    return AppContainer(
        settings=resolved_settings,
        event_bus=event_bus,
        activity=activity,
        lifecycle_controller=lifecycle_controller,
        selection_ledger=selection_ledger,
        finalization_coordinator=finalization_coordinator,
        reopen_arbitrator=reopen_arbitrator,
        close_resources=close_resources,
    )
