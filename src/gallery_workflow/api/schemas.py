"""Pydantic models for request payloads and response serialization."""

import base64
import binascii
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gallery_workflow.domain.finalize import (
    AddOns,
    FinalizeResult,
    ReferenceFile,
    StagingSelection,
)
from gallery_workflow.domain.galleries import GalleryRecord, PhotoRecord
from gallery_workflow.domain.reopen import ReopenRequestRecord


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class StagingSelectionPayload(_Payload):
    """Virtual staging request for a single photo."""

    photo_id: UUID = Field(alias="photoId")
    style: str = "Modern"


class AddOnsPayload(_Payload):
    """Paid add-ons chosen in the finalize flow."""

    express_delivery: bool = Field(default=False, alias="expressDelivery")
    staging_selections: list[StagingSelectionPayload] = Field(
        default_factory=list, alias="stagingSelections"
    )
    blue_hour_selections: list[UUID] = Field(
        default_factory=list, alias="blueHourSelections"
    )
    staging_comment: str | None = Field(default=None, alias="stagingComment")

    def to_domain(self) -> AddOns:
        return AddOns(
            express_delivery=self.express_delivery,
            staging_selections=[
                StagingSelection(photo_id=item.photo_id, style=item.style)
                for item in self.staging_selections
            ],
            blue_hour_selections=list(self.blue_hour_selections),
            staging_comment=self.staging_comment,
        )


class ReferenceFilePayload(_Payload):
    """Staging inspiration image, base64 encoded."""

    filename: str
    content_type: str = Field(default="application/octet-stream", alias="contentType")
    data: str

    @field_validator("data")
    @classmethod
    def _check_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("referenceFile.data must be base64 encoded") from exc
        return value

    def to_domain(self) -> ReferenceFile:
        return ReferenceFile(
            filename=self.filename,
            content_type=self.content_type,
            content=base64.b64decode(self.data),
        )


class FinalizePayload(_Payload):
    """Inbound finalize request."""

    gallery_id: UUID = Field(alias="galleryId")
    selected_photo_ids: list[UUID] = Field(alias="selectedPhotoIds")
    add_ons: AddOnsPayload = Field(default_factory=AddOnsPayload, alias="addOns")
    comment: str | None = None
    reference_file: ReferenceFilePayload | None = Field(
        default=None, alias="referenceFile"
    )
    user_id: UUID | None = Field(default=None, alias="userId")


class TogglePayload(_Payload):
    expected_current_state: bool = Field(alias="expectedCurrentState")
    strict: bool = True


class SelectionChangePayload(_Payload):
    photo_id: UUID = Field(alias="photoId")
    selected: bool


class SelectionBatchPayload(_Payload):
    """Several optimistic selection edits flushed in one request."""

    changes: list[SelectionChangePayload]


class PhotoDetailsPayload(_Payload):
    comment: str | None = None
    staging_requested: bool | None = Field(default=None, alias="stagingRequested")
    staging_style: str | None = Field(default=None, alias="stagingStyle")
    blue_hour_requested: bool | None = Field(default=None, alias="blueHourRequested")


class ReopenRequestPayload(_Payload):
    gallery_id: UUID = Field(alias="galleryId")
    message: str | None = None
    user_id: UUID | None = Field(default=None, alias="userId")


class ResolvePayload(_Payload):
    request_id: UUID = Field(alias="requestId")
    decision: Literal["approved", "rejected"]
    resolved_by: str | None = Field(default=None, alias="resolvedBy")


class DeliverPayload(_Payload):
    final_delivery_link: str | None = Field(default=None, alias="finalDeliveryLink")


def serialize_gallery(gallery: GalleryRecord) -> dict[str, object]:
    return {
        "id": str(gallery.id),
        "slug": gallery.slug,
        "name": gallery.name,
        "status": gallery.status.value,
        "package_target_count": gallery.package_target_count,
        "is_locked": gallery.is_locked,
        "express_delivery_requested": gallery.express_delivery_requested,
        "sent_at": _isoformat(gallery.sent_at),
        "reviewed_at": _isoformat(gallery.reviewed_at),
        "delivered_at": _isoformat(gallery.delivered_at),
        "final_delivery_link": gallery.final_delivery_link,
    }


def serialize_photo(photo: PhotoRecord) -> dict[str, object]:
    return {
        "id": str(photo.id),
        "filename": photo.filename,
        "upload_order": photo.upload_order,
        "is_selected": photo.is_selected,
        "staging_requested": photo.staging_requested,
        "staging_style": photo.staging_style,
        "blue_hour_requested": photo.blue_hour_requested,
        "client_comment": photo.client_comment,
    }


def serialize_request(request: ReopenRequestRecord) -> dict[str, object]:
    return {
        "id": str(request.id),
        "gallery_id": str(request.gallery_id),
        "user_id": str(request.user_id) if request.user_id else None,
        "status": request.status.value,
        "message": request.message,
        "created_at": request.created_at.isoformat(),
        "resolved_at": _isoformat(request.resolved_at),
        "resolved_by": request.resolved_by,
    }


def serialize_finalize_result(result: FinalizeResult) -> dict[str, object]:
    return {
        "gallery": serialize_gallery(result.gallery),
        "selected_count": result.selected_count,
        "staging_count": result.staging_count,
        "blue_hour_count": result.blue_hour_count,
        "express_delivery": result.express_delivery,
        "target_count": result.target_count,
        "target_difference": result.target_difference,
        "reference_url": result.reference_url,
    }


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
