"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from gallery_workflow.api.schemas import (
    DeliverPayload,
    ResolvePayload,
    serialize_gallery,
    serialize_photo,
    serialize_request,
)
from gallery_workflow.domain.reopen import ReopenStatus

if TYPE_CHECKING:
    from gallery_workflow.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/galleries/{gallery_id}", dependencies=[Depends(require_admin)])
async def gallery_detail(gallery_id: UUID, request: Request) -> dict[str, object]:
    """Return a gallery with its photos and reopen requests."""
    container: AppContainer = request.app.state.container
    gallery = container.lifecycle_controller.get_gallery(gallery_id)
    photos = container.selection_ledger.list_photos(gallery.id)
    requests = container.reopen_arbitrator.list_requests(gallery_id=gallery.id)
    return {
        "gallery": serialize_gallery(gallery),
        "link": container.lifecycle_controller.gallery_link(gallery),
        "photos": [serialize_photo(photo) for photo in photos],
        "reopen_requests": [serialize_request(item) for item in requests],
    }


@router.post("/galleries/{gallery_id}/send", dependencies=[Depends(require_admin)])
async def send_gallery(gallery_id: UUID, request: Request) -> dict[str, object]:
    """Open a planned gallery for the client."""
    container: AppContainer = request.app.state.container
    gallery = await container.lifecycle_controller.send(gallery_id)
    return {"gallery": serialize_gallery(gallery)}


@router.get("/galleries/{gallery_id}/review", dependencies=[Depends(require_admin)])
async def review_gallery(gallery_id: UUID, request: Request) -> dict[str, object]:
    """Open the review view; a closed gallery moves to Processing."""
    container: AppContainer = request.app.state.container
    gallery = await container.lifecycle_controller.open_review(gallery_id)
    selected = [
        photo
        for photo in container.selection_ledger.list_photos(gallery.id)
        if photo.is_selected
    ]
    return {
        "gallery": serialize_gallery(gallery),
        "selected_photos": [serialize_photo(photo) for photo in selected],
        "selected_count": len(selected),
        "target_count": gallery.package_target_count,
    }


@router.post("/galleries/{gallery_id}/deliver", dependencies=[Depends(require_admin)])
async def deliver_gallery(
    gallery_id: UUID, request: Request, payload: DeliverPayload | None = None
) -> dict[str, object]:
    """Mark a processed gallery as delivered."""
    container: AppContainer = request.app.state.container
    link = payload.final_delivery_link if payload else None
    gallery = await container.lifecycle_controller.deliver(gallery_id, link)
    return {"gallery": serialize_gallery(gallery)}


@router.post(
    "/galleries/{gallery_id}/resend-delivery", dependencies=[Depends(require_admin)]
)
async def resend_delivery(gallery_id: UUID, request: Request) -> dict[str, object]:
    """Send the delivery notification again."""
    container: AppContainer = request.app.state.container
    gallery = await container.lifecycle_controller.resend_delivery(gallery_id)
    return {"gallery": serialize_gallery(gallery)}


@router.post("/galleries/{gallery_id}/reopen", dependencies=[Depends(require_admin)])
async def reopen_gallery(gallery_id: UUID, request: Request) -> dict[str, object]:
    """Reopen a finalized gallery without a client request."""
    container: AppContainer = request.app.state.container
    gallery = await container.lifecycle_controller.reopen(gallery_id)
    return {"gallery": serialize_gallery(gallery)}


@router.get(
    "/galleries/{gallery_id}/activity", dependencies=[Depends(require_admin)]
)
async def gallery_activity(gallery_id: UUID, request: Request) -> dict[str, object]:
    """Return lifecycle events recorded by this process."""
    container: AppContainer = request.app.state.container
    events = container.activity.for_gallery(gallery_id)
    return {
        "events": [
            {
                "event_id": str(event.event_id),
                "name": event.name,
                "from_status": event.from_status.value,
                "to_status": event.to_status.value,
                "occurred_at": event.occurred_at.isoformat(),
            }
            for event in events
        ]
    }


@router.get("/reopen-requests", dependencies=[Depends(require_admin)])
async def list_reopen_requests(request: Request) -> dict[str, object]:
    """Return pending reopen requests."""
    container: AppContainer = request.app.state.container
    pending = container.reopen_arbitrator.pending_requests()
    return {"requests": [serialize_request(item) for item in pending]}


@router.post("/reopen-requests/resolve", dependencies=[Depends(require_admin)])
async def resolve_reopen_request(
    payload: ResolvePayload, request: Request
) -> dict[str, object]:
    """Approve or reject a pending reopen request."""
    container: AppContainer = request.app.state.container
    resolved = await container.reopen_arbitrator.resolve(
        payload.request_id,
        ReopenStatus(payload.decision),
        resolved_by=payload.resolved_by,
    )
    return serialize_request(resolved)
