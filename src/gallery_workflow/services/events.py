"""In-process channel for lifecycle events."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from uuid import UUID

from gallery_workflow.domain.events import GalleryTransitioned

logger = logging.getLogger(__name__)

EventHandler = Callable[[GalleryTransitioned], Awaitable[None]]


@dataclass
class DomainEventBus:
    """Delivers committed transitions to subscribers.

    Subscribers run in registration order. A failing subscriber is logged and
    skipped; the transition that produced the event has already been committed
    and is never rolled back. Background subscribers run as tasks so the
    publisher does not wait for them; ``drain`` awaits the ones still running.
    """

    handlers: list[EventHandler] = field(default_factory=list)
    background_handlers: list[EventHandler] = field(default_factory=list)
    pending: set[asyncio.Task[None]] = field(
        default_factory=set, init=False, repr=False
    )

    def subscribe(self, handler: EventHandler, background: bool = False) -> None:
        """Register a handler for every published event."""
        if background:
            self.background_handlers.append(handler)
        else:
            self.handlers.append(handler)

    async def publish(self, event: GalleryTransitioned) -> None:
        """Hand the event to all subscribers."""
        for handler in list(self.handlers):
            await self._safe_notify(handler, event)
        for handler in list(self.background_handlers):
            task = asyncio.create_task(self._safe_notify(handler, event))
            self.pending.add(task)
            task.add_done_callback(self.pending.discard)

    async def drain(self) -> None:
        """Wait until every scheduled background handler has finished."""
        while self.pending:
            await asyncio.gather(*self.pending)

    async def _safe_notify(
        self, handler: EventHandler, event: GalleryTransitioned
    ) -> None:
        try:
            await handler(event)
        except Exception:
            logger.exception(
                "Event subscriber failed",
                extra={"event": event.name, "gallery_id": str(event.gallery_id)},
            )


@dataclass
class RecordingSubscriber:
    """Keeps the most recent events; used by the admin activity view."""

    limit: int = 100
    events: list[GalleryTransitioned] = field(default_factory=list)

    async def __call__(self, event: GalleryTransitioned) -> None:
        self.events.append(event)
        if len(self.events) > self.limit:
            del self.events[: len(self.events) - self.limit]

    def for_gallery(self, gallery_id: UUID) -> list[GalleryTransitioned]:
        return [event for event in self.events if event.gallery_id == gallery_id]
