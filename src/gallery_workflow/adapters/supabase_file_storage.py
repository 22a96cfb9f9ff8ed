"""Supabase Storage adapter for client reference files."""

from dataclasses import dataclass

from supabase import Client

from gallery_workflow.domain.finalize import StoredFile
from gallery_workflow.services.finalization import FileStorage


@dataclass
class SupabaseFileStorage(FileStorage):
    """Stores files in a Supabase Storage bucket."""

    client: Client
    bucket: str

    def upload(self, path: str, content: bytes, content_type: str) -> StoredFile:
        """Upload bytes and return the public URL."""
        bucket = self.client.storage.from_(self.bucket)
        bucket.upload(path, content, {"content-type": content_type})
        return StoredFile(path=path, public_url=str(bucket.get_public_url(path)))

    def remove(self, path: str) -> None:
        """Delete a stored object."""
        self.client.storage.from_(self.bucket).remove([path])
