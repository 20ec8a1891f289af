"""Player image storage.

The API only ever keeps the public URL returned here; the bytes live in an
object-storage bucket.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional, Protocol
from urllib.parse import urlparse

from supabase import Client, create_client

from ..core.constants import ALLOWED_IMAGE_EXTENSIONS
from ..core.exceptions import StoreError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageUpload:
    filename: str
    content_type: str
    data: bytes

    @property
    def extension(self) -> str:
        return PurePosixPath(self.filename or "").suffix.lower()


def validate_image(upload: ImageUpload) -> ImageUpload:
    """Both the file extension and the declared mimetype must name an image type."""
    ext_ok = upload.extension.lstrip(".") in ALLOWED_IMAGE_EXTENSIONS
    mime_ok = any(kind in (upload.content_type or "").lower() for kind in ALLOWED_IMAGE_EXTENSIONS)
    if not (ext_ok and mime_ok):
        raise ValidationError("Only image files are allowed!")
    if not upload.data:
        raise ValidationError("Image file is empty")
    return upload


def object_path_for(player_id: int, upload: ImageUpload) -> str:
    return f"players/player-{player_id}-{secrets.token_hex(4)}{upload.extension}"


class ImageStorage(Protocol):
    def upload(self, upload: ImageUpload, *, player_id: int) -> str:
        """Store the blob and return its public URL."""
        raise NotImplementedError

    def delete(self, url: str) -> None:
        """Best-effort removal; never raises for a missing object."""
        raise NotImplementedError


class SupabaseImageStorage(ImageStorage):
    def __init__(self, client: Client, *, bucket: str = "player-images"):
        self._client = client
        self._bucket = bucket

    @classmethod
    def from_settings(cls, *, url: str, key: str, bucket: str) -> "SupabaseImageStorage":
        return cls(create_client(url, key), bucket=bucket)

    def upload(self, upload: ImageUpload, *, player_id: int) -> str:
        path = object_path_for(player_id, upload)
        bucket = self._client.storage.from_(self._bucket)
        try:
            bucket.upload(path, upload.data, {"content-type": upload.content_type, "upsert": "true"})
        except Exception as e:
            logger.exception("Supabase upload failed for %s", path)
            raise StoreError("Image upload failed") from e

        logger.info("Uploaded player image %s", path)
        return bucket.get_public_url(path)

    def _object_path(self, url: str) -> Optional[str]:
        marker = f"/storage/v1/object/public/{self._bucket}/"
        parts = urlparse(url).path.split(marker, 1)
        return parts[1] if len(parts) == 2 and parts[1] else None

    def delete(self, url: str) -> None:
        if not url:
            return
        path = self._object_path(url)
        if not path:
            logger.warning("Not a %s bucket URL, skipping delete: %s", self._bucket, url)
            return
        try:
            self._client.storage.from_(self._bucket).remove([path])
        except Exception:
            # A stale image must not block player updates or deletes.
            logger.exception("Supabase delete failed for %s", path)


class InMemoryImageStorage(ImageStorage):
    """Keeps blobs in a dict; used in tests and when no bucket is configured."""

    def __init__(self, *, base_url: str = "memory://player-images"):
        self._base_url = base_url.rstrip("/")
        self.objects: dict[str, bytes] = {}

    def upload(self, upload: ImageUpload, *, player_id: int) -> str:
        url = f"{self._base_url}/{object_path_for(player_id, upload)}"
        self.objects[url] = upload.data
        return url

    def delete(self, url: str) -> None:
        self.objects.pop(url, None)
