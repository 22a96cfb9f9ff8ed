"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

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
from gallery_workflow.domain.finalize import PhotoChoice
from gallery_workflow.domain.galleries import GalleryStatus
from gallery_workflow.domain.reopen import ReopenStatus


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": [], "delete": []}
    )
    payloads: list[object] = field(default_factory=list)
    last_filters: list[tuple[str, object]] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    @property
    def last_payload(self) -> object | None:
        return self.payloads[-1] if self.payloads else None

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.payloads.append(payload)
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.payloads.append(payload)
        self.last_filters = []
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        self.last_filters = []
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeBucket:
    uploads: dict[str, tuple[bytes, dict[str, str]]] = field(default_factory=dict)
    removed: list[str] = field(default_factory=list)

    def upload(self, path: str, content: bytes, options: dict[str, str]) -> None:
        self.uploads[path] = (content, options)

    def get_public_url(self, path: str) -> str:
        return f"https://example.supabase.co/storage/v1/object/public/proofs/{path}"

    def remove(self, paths: list[str]) -> None:
        self.removed.extend(paths)


@dataclass
class FakeStorage:
    buckets: dict[str, FakeBucket] = field(default_factory=dict)

    def from_(self, name: str) -> FakeBucket:
        return self.buckets.setdefault(name, FakeBucket())


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)
    storage: FakeStorage = field(default_factory=FakeStorage)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _gallery_row(gallery_id: str, status: str = "Open") -> dict[str, object]:
    return {
        "id": gallery_id,
        "slug": "harbour-street",
        "name": "12 Harbour Street",
        "status": status,
        "package_target_count": 25,
        "is_locked": False,
        "express_delivery_requested": None,
        "sent_at": "2026-03-01T10:00:00+00:00",
        "reviewed_at": None,
        "delivered_at": None,
        "final_delivery_link": None,
    }


def _photo_row(photo_id: str, gallery_id: str) -> dict[str, object]:
    return {
        "id": photo_id,
        "gallery_id": gallery_id,
        "filename": "IMG_0001.jpg",
        "upload_order": 1,
        "is_selected": True,
        "staging_requested": False,
        "staging_style": None,
        "blue_hour_requested": False,
        "client_comment": "",
    }


def test_supabase_gallery_repository_reads_rows() -> None:
    client = FakeSupabaseClient()
    gallery_id = str(uuid4())
    client.table("galleries").queue("select", [_gallery_row(gallery_id)])

    repository = SupabaseGalleryRepository(client)
    gallery = repository.get_gallery(UUID(gallery_id))

    assert gallery is not None
    assert gallery.status == GalleryStatus.OPEN
    assert gallery.package_target_count == 25
    assert gallery.sent_at == datetime(2026, 3, 1, 10, tzinfo=UTC)
    assert gallery.express_delivery_requested is False
    assert repository.get_gallery_by_slug("missing") is None


def test_supabase_gallery_transition_guards_status() -> None:
    client = FakeSupabaseClient()
    table = client.table("galleries")
    gallery_id = str(uuid4())
    table.queue("update", [_gallery_row(gallery_id, status="Closed")])

    repository = SupabaseGalleryRepository(client)
    reviewed_at = datetime(2026, 3, 2, tzinfo=UTC)
    updated = repository.transition_status(
        UUID(gallery_id),
        GalleryStatus.OPEN,
        GalleryStatus.CLOSED,
        {"reviewed_at": reviewed_at, "is_locked": True},
    )

    assert updated is not None
    assert updated.status == GalleryStatus.CLOSED
    assert table.last_filters == [("id", gallery_id), ("status", "Open")]
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["status"] == "Closed"
    assert table.last_payload["reviewed_at"] == reviewed_at.isoformat()

    lost = repository.transition_status(
        UUID(gallery_id), GalleryStatus.OPEN, GalleryStatus.CLOSED, {}
    )
    assert lost is None


def test_supabase_gallery_lock_guards_status_and_lock() -> None:
    client = FakeSupabaseClient()
    table = client.table("galleries")
    gallery_id = str(uuid4())
    table.queue("update", [{**_gallery_row(gallery_id), "is_locked": True}])

    repository = SupabaseGalleryRepository(client)
    claimed = repository.set_locked(UUID(gallery_id), GalleryStatus.OPEN, True)

    assert claimed is not None
    assert claimed.is_locked
    assert table.last_filters == [
        ("id", gallery_id),
        ("status", "Open"),
        ("is_locked", False),
    ]
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["is_locked"] is True
    assert repository.set_locked(UUID(gallery_id), GalleryStatus.OPEN, True) is None


def test_supabase_gallery_client_emails_and_files() -> None:
    client = FakeSupabaseClient()
    client.table("gallery_clients").queue(
        "select",
        [
            {"clients": {"email": "a@example.com"}},
            {"clients": [{"email": "b@example.com"}, {"email": "a@example.com"}]},
            {"clients": None},
        ],
    )
    client.table("delivery_files").queue("select", [{"id": "1"}, {"id": "2"}])

    repository = SupabaseGalleryRepository(client)

    assert repository.list_client_emails(uuid4()) == ["a@example.com", "b@example.com"]
    assert repository.count_delivery_files(uuid4()) == 2


def test_supabase_photo_repository_selection_guard() -> None:
    client = FakeSupabaseClient()
    table = client.table("photos")
    photo_id = str(uuid4())
    gallery_id = str(uuid4())
    table.queue("update", [_photo_row(photo_id, gallery_id)])

    repository = SupabasePhotoRepository(client)
    updated = repository.set_selection(UUID(photo_id), True, expected=False)

    assert updated is not None
    assert updated.is_selected
    assert updated.client_comment is None
    assert table.last_filters == [("id", photo_id), ("is_selected", False)]
    assert repository.set_selection(UUID(photo_id), True, expected=False) is None


def test_supabase_photo_repository_lists_and_applies() -> None:
    client = FakeSupabaseClient()
    table = client.table("photos")
    gallery_id = str(uuid4())
    table.queue("select", [_photo_row(str(uuid4()), gallery_id)])

    repository = SupabasePhotoRepository(client)
    photos = repository.list_photos(UUID(gallery_id))
    repository.apply_choices(
        [
            PhotoChoice(
                photo_id=photos[0].id,
                is_selected=True,
                staging_requested=True,
                staging_style="Modern",
                blue_hour_requested=False,
            )
        ]
    )

    assert len(photos) == 1
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["staging_style"] == "Modern"


def test_supabase_photo_repository_rejects_protected_fields() -> None:
    repository = SupabasePhotoRepository(FakeSupabaseClient())

    with pytest.raises(ValueError, match="client-editable"):
        repository.update_photo(uuid4(), {"gallery_id": str(uuid4())})


def test_supabase_reopen_repository() -> None:
    client = FakeSupabaseClient()
    table = client.table("reopen_requests")
    request_id = str(uuid4())
    gallery_id = str(uuid4())
    user_id = uuid4()
    row = {
        "id": request_id,
        "gallery_id": gallery_id,
        "user_id": str(user_id),
        "status": "pending",
        "message": "Missed the garden",
        "created_at": "2026-03-03T09:30:00+00:00",
        "resolved_at": None,
        "resolved_by": None,
    }
    table.queue("insert", [row])
    table.queue(
        "update",
        [
            {
                **row,
                "status": "approved",
                "resolved_at": "2026-03-03T10:00:00+00:00",
            }
        ],
    )

    repository = SupabaseReopenRequestRepository(client)
    created = repository.create_request(
        UUID(gallery_id), "Missed the garden", user_id=user_id
    )
    insert_payload = table.last_payload
    resolved = repository.resolve_request(
        created.id,
        expected=ReopenStatus.PENDING,
        target=ReopenStatus.APPROVED,
        resolved_at=datetime(2026, 3, 3, 10, tzinfo=UTC),
        resolved_by=None,
    )

    assert created.status == ReopenStatus.PENDING
    assert isinstance(insert_payload, dict)
    assert insert_payload["user_id"] == str(user_id)
    assert created.user_id == user_id
    assert resolved is not None
    assert resolved.status == ReopenStatus.APPROVED
    assert table.last_filters == [("id", request_id), ("status", "pending")]
    assert repository.get_pending_request(UUID(gallery_id)) is None


def test_supabase_feedback_repository() -> None:
    client = FakeSupabaseClient()
    feedback_id = str(uuid4())
    reference_id = str(uuid4())
    client.table("gallery_feedback").queue("insert", [{"id": feedback_id}])
    client.table("staging_references").queue("insert", [{"id": reference_id}])

    author_id = uuid4()
    photo_id = uuid4()

    repository = SupabaseFeedbackRepository(client)
    created_feedback = repository.create_feedback(
        uuid4(), "Lovely", author_id=author_id
    )
    created_reference = repository.create_staging_reference(
        photo_id=photo_id, file_url="https://x/ref.jpg", notes=None
    )
    repository.delete_feedback(created_feedback)

    assert str(created_feedback) == feedback_id
    assert str(created_reference) == reference_id
    feedback_payload = client.table("gallery_feedback").last_payload
    assert isinstance(feedback_payload, dict)
    assert feedback_payload["author_user_id"] == str(author_id)
    reference_payload = client.table("staging_references").last_payload
    assert reference_payload == {
        "photo_id": str(photo_id),
        "uploader_user_id": None,
        "file_url": "https://x/ref.jpg",
        "notes": None,
    }
    assert client.table("gallery_feedback").last_filters == [("id", feedback_id)]


def test_supabase_file_storage() -> None:
    client = FakeSupabaseClient()
    storage = SupabaseFileStorage(client, "proofs")

    stored = storage.upload("harbour/staging-ref-1.jpg", b"jpeg", "image/jpeg")
    storage.remove(stored.path)

    bucket = client.storage.buckets["proofs"]
    assert bucket.uploads["harbour/staging-ref-1.jpg"][1] == {
        "content-type": "image/jpeg"
    }
    assert stored.public_url.endswith("/proofs/harbour/staging-ref-1.jpg")
    assert bucket.removed == ["harbour/staging-ref-1.jpg"]


def test_supabase_webhook_log_repository() -> None:
    client = FakeSupabaseClient()
    gallery_id = uuid4()

    SupabaseWebhookLogRepository(client).create_log(
        gallery_id=gallery_id,
        webhook_type="deliver",
        status="success",
        response_body={"status": 200},
    )

    assert client.table("webhook_logs").last_payload == {
        "gallery_id": str(gallery_id),
        "type": "deliver",
        "status": "success",
        "response_body": {"status": 200},
    }
