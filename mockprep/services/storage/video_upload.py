"""Upload answer videos and resolve their public URLs."""

from __future__ import annotations

from typing import Optional

from ...core.media.base import MediaBlob
from ...logging import get_logger
from .base import ObjectStorage

LOGGER = get_logger(__name__)

MAX_VIDEO_BYTES = 50 * 1024 * 1024


def video_object_path(session_id: str, answer_ordinal: int) -> str:
    return f"{session_id}/{answer_ordinal}.webm"


class VideoUploader:
    """Best-effort uploads: every failure is logged and reported as ``None``."""

    def __init__(self, storage: ObjectStorage, *, max_bytes: int = MAX_VIDEO_BYTES) -> None:
        self.storage = storage
        self.max_bytes = max_bytes

    async def upload(self, blob: MediaBlob, session_id: str, answer_ordinal: int) -> Optional[str]:
        if blob.size > self.max_bytes:
            LOGGER.warning(
                "Video too large (%.1fMB), skipping upload",
                blob.size / 1024 / 1024,
            )
            return None

        path = video_object_path(session_id, answer_ordinal)
        try:
            await self.storage.upload(
                path,
                blob.data,
                content_type=blob.mime_type or "video/webm",
                upsert=True,
            )
            url = self.storage.public_url(path)
        except Exception:
            LOGGER.exception("Video upload failed for %s", path)
            return None

        LOGGER.info("Uploaded answer video %s", path)
        return url


__all__ = ["MAX_VIDEO_BYTES", "VideoUploader", "video_object_path"]
