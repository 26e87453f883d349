"""Supabase Storage client built on the REST API."""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

import httpx

from ...config import Settings, get_settings
from ...logging import get_logger
from .base import ObjectStorage, StorageError

LOGGER = get_logger(__name__)


class SupabaseObjectStorage(ObjectStorage):
    """Upload objects to one bucket.

    Objects in the bucket are read through unauthenticated public URLs; who
    may write under which prefix is decided by the bucket's row level
    security policies, not by this client.
    """

    def __init__(
        self,
        url: str,
        key: str,
        bucket: str,
        *,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not url or not key:
            raise StorageError("Supabase URL and key must be configured")
        self.url = url.rstrip("/")
        self.bucket = bucket
        self._key = key
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SupabaseObjectStorage":
        settings = settings or get_settings()
        return cls(settings.supabase_url or "", settings.supabase_key or "", settings.storage_bucket)

    def _object_path(self, path: str) -> str:
        return quote(path.lstrip("/"), safe="/")

    async def upload(self, path: str, data: bytes, *, content_type: str, upsert: bool = False) -> None:
        endpoint = f"{self.url}/storage/v1/object/{self.bucket}/{self._object_path(path)}"
        headers = {
            "Authorization": f"Bearer {self._key}",
            "apikey": self._key,
            "Content-Type": content_type,
            "x-upsert": "true" if upsert else "false",
        }
        try:
            response = await self._client.post(endpoint, content=data, headers=headers)
        except httpx.HTTPError as exc:
            raise StorageError(f"Upload request failed: {exc}") from exc
        if response.status_code >= 400:
            raise StorageError(f"Upload failed ({response.status_code}): {response.text}")
        LOGGER.debug("Stored %s in bucket %s", path, self.bucket)

    def public_url(self, path: str) -> str:
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{self._object_path(path)}"

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["SupabaseObjectStorage"]
