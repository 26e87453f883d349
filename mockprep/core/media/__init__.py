"""Media capture package."""

from .base import (
    AUDIO_MIME_CANDIDATES,
    VIDEO_MIME_CANDIDATES,
    CaptureError,
    MediaBackend,
    MediaBlob,
    MediaError,
    MediaRecorder,
    MediaTrack,
    RecorderInactiveError,
    RecorderTimeoutError,
    RecordingActiveError,
    select_supported_mime,
)
from .session import RecordingSession

__all__ = [
    "AUDIO_MIME_CANDIDATES",
    "VIDEO_MIME_CANDIDATES",
    "CaptureError",
    "MediaBackend",
    "MediaBlob",
    "MediaError",
    "MediaRecorder",
    "MediaTrack",
    "RecorderInactiveError",
    "RecorderTimeoutError",
    "RecordingActiveError",
    "RecordingSession",
    "select_supported_mime",
]
