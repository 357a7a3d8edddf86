"""Blob storage for avatars and message photos."""

import base64
import binascii
import logging
import uuid

import httpx
from supabase import Client

from shared.exceptions import ExternalServiceError, ValidationError

from .base import BlobStore

logger = logging.getLogger(__name__)

AVATAR_PREFIX = "avatars"
PHOTO_PREFIX = "photos"
CONTENT_TYPE = "image/jpeg"


def _new_name() -> str:
    return f"{uuid.uuid4()}.jpg"


class InvalidImageError(ValidationError):
    """Uploaded image payload could not be decoded."""

    def __init__(self, field: str = "blob", reason: str = ""):
        super().__init__(
            f"Invalid image in {field}: {reason}",
            code="INVALID_IMAGE",
            details={"field": field},
            messages={field: "This is not a valid image"},
        )


def decode_image(blob: str, field: str = "blob") -> bytes:
    """
    Decode a base64 image, with or without a ``data:`` URL prefix.

    Raises:
        InvalidImageError: If the payload is not base64
    """
    if blob.startswith("data:") and "," in blob:
        blob = blob.split(",", 1)[1]
    try:
        return base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(field, str(e))


async def download(url: str, timeout: float = 10.0) -> bytes:
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as e:
        raise ExternalServiceError(f"Could not download {url}: {e}", service="storage")
    return response.content


class SupabaseBlobStore(BlobStore):
    """Public Supabase storage bucket."""

    def __init__(self, client: Client, bucket: str):
        self._db = client
        self._bucket = bucket

    def _upload(self, path: str, data: bytes) -> str:
        bucket = self._db.storage.from_(self._bucket)
        try:
            bucket.upload(path, data, {"content-type": CONTENT_TYPE, "cache-control": "525600"})
        except Exception as e:
            raise ExternalServiceError(f"Upload of {path} failed: {e}", service="storage")
        return bucket.get_public_url(path)

    def _path_from_url(self, url: str) -> str:
        marker = f"/{self._bucket}/"
        return url.split(marker, 1)[1] if marker in url else ""

    async def put_photo(self, parent_id: str, data: bytes) -> str:
        return self._upload(f"{PHOTO_PREFIX}/{parent_id}/{_new_name()}", data)

    async def put_avatar(self, data: bytes, old_url: str = "") -> str:
        url = self._upload(f"{AVATAR_PREFIX}/{_new_name()}", data)
        old_path = self._path_from_url(old_url)
        if old_path:
            self._db.storage.from_(self._bucket).remove([old_path])
        return url

    async def put_avatar_from_url(self, url: str) -> str:
        return await self.put_avatar(await download(url))

    async def delete_photo(self, url: str) -> None:
        path = self._path_from_url(url)
        if path:
            self._db.storage.from_(self._bucket).remove([path])


class MemoryBlobStore(BlobStore):
    """Keeps blobs in a dict. URLs are fake but stable."""

    def __init__(self, base_url: str = "https://storage.local/convo"):
        self._base_url = base_url
        self.blobs: dict[str, bytes] = {}

    def _put(self, path: str, data: bytes) -> str:
        self.blobs[path] = data
        return f"{self._base_url}/{path}"

    async def put_photo(self, parent_id: str, data: bytes) -> str:
        return self._put(f"{PHOTO_PREFIX}/{parent_id}/{_new_name()}", data)

    async def put_avatar(self, data: bytes, old_url: str = "") -> str:
        if old_url.startswith(self._base_url):
            self.blobs.pop(old_url[len(self._base_url) + 1:], None)
        return self._put(f"{AVATAR_PREFIX}/{_new_name()}", data)

    async def put_avatar_from_url(self, url: str) -> str:
        logger.info("storage.put_avatar_from_url(%s)", url)
        return self._put(f"{AVATAR_PREFIX}/{_new_name()}", b"")

    async def delete_photo(self, url: str) -> None:
        if url.startswith(self._base_url):
            self.blobs.pop(url[len(self._base_url) + 1:], None)
