"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gallery_workflow.api.admin import router as admin_router
from gallery_workflow.api.schemas import (
    FinalizePayload,
    PhotoDetailsPayload,
    ReopenRequestPayload,
    SelectionBatchPayload,
    TogglePayload,
    serialize_finalize_result,
    serialize_gallery,
    serialize_photo,
    serialize_request,
)
from gallery_workflow.app_logging import configure_logging
from gallery_workflow.containers import AppContainer
from gallery_workflow.domain.errors import (
    ForeignPhoto,
    GalleryNotFound,
    GalleryWorkflowError,
    PhotoNotFound,
)
from gallery_workflow.domain.galleries import ClientView, GalleryRecord
from gallery_workflow.services.lifecycle import client_view_mode
from gallery_workflow.services.selection import SelectionBuffer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(GalleryWorkflowError)
    async def workflow_error_handler(
        request: Request, exc: GalleryWorkflowError
    ) -> JSONResponse:
        logger.warning(
            "Request rejected",
            extra={"code": exc.code, "guard": exc.guard, "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.status_code, content={"error": exc.to_dict()}
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/gallery/{slug}")
    async def client_gallery(slug: str, request: Request) -> dict[str, object]:
        """Return the client page for the gallery's current status."""
        state_container: AppContainer = request.app.state.container
        gallery = state_container.lifecycle_controller.get_client_gallery(slug)
        view = ClientView(
            mode=client_view_mode(gallery.status) or "waiting",
            gallery=gallery,
            photos=state_container.selection_ledger.list_photos(gallery.id),
        )
        return {
            "mode": view.mode,
            "gallery": serialize_gallery(view.gallery),
            "photos": [serialize_photo(photo) for photo in view.photos],
        }

    @app.post("/gallery/{slug}/photos/{photo_id}/toggle")
    async def toggle_photo(
        slug: str, photo_id: UUID, payload: TogglePayload, request: Request
    ) -> dict[str, object]:
        """Flip one photo's selection."""
        state_container: AppContainer = request.app.state.container
        gallery = state_container.lifecycle_controller.get_client_gallery(slug)
        _require_photo(state_container, gallery, photo_id)
        selected = state_container.selection_ledger.toggle(
            photo_id, payload.expected_current_state, strict=payload.strict
        )
        return {"photo_id": str(photo_id), "is_selected": selected}

    @app.post("/gallery/{slug}/selections")
    async def store_selections(
        slug: str, payload: SelectionBatchPayload, request: Request
    ) -> dict[str, object]:
        """Store a batch of optimistic selection edits."""
        state_container: AppContainer = request.app.state.container
        gallery = state_container.lifecycle_controller.get_client_gallery(slug)
        buffer = SelectionBuffer.load(state_container.selection_ledger, gallery.id)
        foreign = [
            change.photo_id
            for change in payload.changes
            if change.photo_id not in buffer.persisted
        ]
        if foreign:
            raise ForeignPhoto(gallery.id, foreign)
        for change in payload.changes:
            buffer.stage(change.photo_id, change.selected)
        report = buffer.flush()
        return {
            "written": [str(photo_id) for photo_id in report.written],
            "failed": [str(photo_id) for photo_id in report.failed],
            "dropped": [str(photo_id) for photo_id in report.dropped],
            "selected_photo_ids": [str(photo_id) for photo_id in buffer.selected_ids()],
        }

    @app.patch("/gallery/{slug}/photos/{photo_id}")
    async def update_photo(
        slug: str, photo_id: UUID, payload: PhotoDetailsPayload, request: Request
    ) -> dict[str, str]:
        """Update a photo's comment and add-on flags."""
        state_container: AppContainer = request.app.state.container
        gallery = state_container.lifecycle_controller.get_client_gallery(slug)
        _require_photo(state_container, gallery, photo_id)
        state_container.selection_ledger.update_details(
            photo_id,
            comment=payload.comment,
            staging_requested=payload.staging_requested,
            staging_style=payload.staging_style,
            blue_hour_requested=payload.blue_hour_requested,
        )
        return {"status": "ok"}

    @app.post("/gallery/{slug}/finalize")
    async def finalize(
        slug: str, payload: FinalizePayload, request: Request
    ) -> dict[str, object]:
        """Submit the client's selection and close the gallery for review."""
        state_container: AppContainer = request.app.state.container
        gallery = _client_gallery_matching(state_container, slug, payload.gallery_id)
        result = await state_container.finalization_coordinator.finalize(
            gallery.id,
            payload.selected_photo_ids,
            add_ons=payload.add_ons.to_domain(),
            comment=payload.comment,
            reference_file=(
                payload.reference_file.to_domain() if payload.reference_file else None
            ),
            actor_id=payload.user_id,
        )
        return serialize_finalize_result(result)

    @app.post("/gallery/{slug}/reopen-requests", status_code=201)
    async def request_reopen(
        slug: str, payload: ReopenRequestPayload, request: Request
    ) -> dict[str, object]:
        """File a reopen request for a finalized gallery."""
        state_container: AppContainer = request.app.state.container
        gallery = _client_gallery_matching(state_container, slug, payload.gallery_id)
        reopen_request = state_container.reopen_arbitrator.request_reopen(
            gallery.id, payload.message, user_id=payload.user_id
        )
        return serialize_request(reopen_request)

    return app


def _require_photo(
    state_container: AppContainer, gallery: GalleryRecord, photo_id: UUID
) -> None:
    """Reject photo ids that do not belong to the gallery in the URL."""
    photos = state_container.selection_ledger.list_photos(gallery.id)
    if not any(photo.id == photo_id for photo in photos):
        raise PhotoNotFound(photo_id)


def _client_gallery_matching(
    state_container: AppContainer, slug: str, gallery_id: UUID
) -> GalleryRecord:
    gallery = state_container.lifecycle_controller.get_client_gallery(slug)
    if gallery.id != gallery_id:
        raise GalleryNotFound(gallery_id)
    return gallery
