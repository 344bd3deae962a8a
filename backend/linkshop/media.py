import logging
import posixpath
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from fastapi import UploadFile
from supabase import Client

from .errors import UploadFailed

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE_URL = "https://via.placeholder.com/800x600.png?text=DEV+IMAGE"
PLACEHOLDER_AVATAR_URL = "https://via.placeholder.com/400.png?text=Avatar"


@dataclass(frozen=True)
class UploadedImage:
    url: str
    # opaque reference used to delete the file later; "" when there is nothing to delete
    public_id: str


class SupabaseMedia:
    """
    Image hosting on a Supabase Storage bucket.

    Objects are stored under a random key; that key is the reference id
    handed back to callers and later passed to delete().
    """

    def __init__(self, client: Client, bucket: str, folder: str = "uploads"):
        self.client = client
        self.bucket = bucket
        self.folder = folder

    def _object_key(self, filename: Optional[str]) -> str:
        ext = posixpath.splitext(filename or "")[1].lower()
        return f"{self.folder}/{uuid4().hex}{ext}"

    def upload(self, file: UploadFile, kind: str = "image") -> UploadedImage:
        key = self._object_key(file.filename)
        content_type = file.content_type or "application/octet-stream"
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(key, file.file.read(), {"content-type": content_type})
            url = bucket.get_public_url(key)
        except Exception as exc:
            logger.exception("upload of %s to bucket %s failed", kind, self.bucket)
            raise UploadFailed("upload failed") from exc
        logger.info("uploaded %s %s", kind, key)
        return UploadedImage(url=url, public_id=key)

    def delete(self, public_id: str) -> None:
        """Best effort: failures are logged and never raised."""
        if not public_id:
            return
        try:
            self.client.storage.from_(self.bucket).remove([public_id])
        except Exception:
            logger.warning("could not delete media %s", public_id, exc_info=True)
            return
        logger.info("deleted media %s", public_id)


class PlaceholderMedia:
    """Development stand-in: files are discarded and placeholder URLs returned."""

    def upload(self, file: UploadFile, kind: str = "image") -> UploadedImage:
        file.file.close()
        url = PLACEHOLDER_AVATAR_URL if kind == "avatar" else PLACEHOLDER_IMAGE_URL
        return UploadedImage(url=url, public_id="")

    def delete(self, public_id: str) -> None:
        return None
