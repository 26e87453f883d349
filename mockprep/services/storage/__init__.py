"""Object storage services."""

from .base import ObjectStorage, StorageError
from .video_upload import MAX_VIDEO_BYTES, VideoUploader, video_object_path

__all__ = [
    "MAX_VIDEO_BYTES",
    "ObjectStorage",
    "StorageError",
    "VideoUploader",
    "video_object_path",
]
