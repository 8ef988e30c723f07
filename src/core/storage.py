"""Attachment storage on a Supabase Storage bucket (REST API over httpx)."""

import logging
import uuid
from urllib.parse import quote

import httpx

from src.core.config import settings
from src.core.exceptions import StorageError

logger = logging.getLogger(__name__)


def unique_key(original_name: str) -> str:
    """Storage key for an upload: random prefix plus the client's file name."""
    name = (original_name or "anexo").replace("/", "_").replace("\\", "_")
    return f"{uuid.uuid4()}_{name}"


class SupabaseAttachmentStore:
    """Stores uploads under ``<bucket>/<key>`` and serves them from the public URL."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
        }

    def _object_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(key)}"

    async def store(self, content: bytes, original_name: str, content_type: str | None) -> str:
        key = unique_key(original_name)
        headers = {
            **self._headers,
            "Content-Type": content_type or "application/octet-stream",
            "x-upsert": "false",
        }
        try:
            resp = await self._client.post(self._object_url(key), content=content, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Attachment upload failed for %s: %s", key, e)
            raise StorageError(f"Could not upload attachment: {e}") from e
        if resp.status_code >= 300:
            logger.error("Attachment upload rejected (%s): %s", resp.status_code, resp.text)
            raise StorageError(f"Storage rejected upload with status {resp.status_code}")

        logger.info("Stored attachment %s (%d bytes)", key, len(content))
        return key

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(key)}"

    async def remove(self, key: str) -> None:
        try:
            resp = await self._client.delete(self._object_url(key), headers=self._headers)
        except httpx.HTTPError as e:
            raise StorageError(f"Could not remove attachment: {e}") from e
        if resp.status_code >= 300 and resp.status_code != 404:
            raise StorageError(f"Storage rejected removal with status {resp.status_code}")
        logger.info("Removed attachment %s", key)

    async def close(self) -> None:
        await self._client.aclose()


_attachment_store: SupabaseAttachmentStore | None = None


async def get_attachment_store() -> SupabaseAttachmentStore:
    """Process-wide attachment store built from settings.

    Resolved on the event loop, so only one client is ever built.
    """
    global _attachment_store
    if _attachment_store is None:
        _attachment_store = SupabaseAttachmentStore(
            base_url=settings.supabase_url,
            service_key=settings.supabase_service_key,
            bucket=settings.attachments_bucket,
            timeout=settings.storage_timeout,
        )
    return _attachment_store


async def close_attachment_store() -> None:
    global _attachment_store
    if _attachment_store is not None:
        await _attachment_store.close()
        _attachment_store = None
