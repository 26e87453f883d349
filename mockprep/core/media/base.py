"""Media capture abstractions shared by every recording backend."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

VIDEO_MIME_CANDIDATES = (
    "video/webm;codecs=vp9,opus",
    "video/webm;codecs=vp8,opus",
    "video/webm",
    "video/mp4",
)

AUDIO_MIME_CANDIDATES = (
    "audio/webm;codecs=opus",
    "audio/webm",
    "audio/ogg;codecs=opus",
    "audio/mp4",
)

RECORDER_INACTIVE = "inactive"
RECORDER_RECORDING = "recording"


@dataclass
class MediaTrack:
    """A single camera or microphone source."""

    kind: str
    device: str
    label: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind not in {"audio", "video"}:
            raise ValueError(f"Unsupported track kind: {self.kind}")


@dataclass
class MediaBlob:
    """Finalized recording payload tagged with its media type."""

    data: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)


class MediaRecorder(abc.ABC):
    """One recording over a fixed set of tracks.

    Mirrors the lifecycle of a device recorder: ``start`` begins delivering
    encoded chunks to ``on_data``; ``stop`` asks the device to finalize and
    returns once every chunk has been delivered; ``close`` releases the device
    immediately without finalizing.
    """

    mime_type: str

    @property
    @abc.abstractmethod
    def state(self) -> str:
        """Either ``"inactive"`` or ``"recording"``."""

    @abc.abstractmethod
    def start(self, on_data: Callable[[bytes], None]) -> None:
        """Begin recording and stream encoded chunks to ``on_data``."""

    @abc.abstractmethod
    async def stop(self) -> None:
        """Finalize the recording; resolves when the device has flushed."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release every device handle without finalizing."""


class MediaBackend(abc.ABC):
    """Factory for recorders on a given platform."""

    name: str = "abstract"

    @abc.abstractmethod
    def is_type_supported(self, mime_type: str) -> bool:
        """Return ``True`` if recordings can be encoded as ``mime_type``."""

    @abc.abstractmethod
    def create_recorder(self, tracks: Sequence[MediaTrack], mime_type: str = "") -> MediaRecorder:
        """Create a recorder; an empty ``mime_type`` selects the backend default."""


class MediaError(RuntimeError):
    """Base class for capture failures."""


class CaptureError(MediaError):
    """Raised when a device or recorder cannot be initialised."""


class RecorderInactiveError(MediaError):
    """Raised when stopping a recorder that is not running."""


class RecorderTimeoutError(MediaError):
    """Raised when a device does not finalize within the allowed interval."""


class RecordingActiveError(MediaError):
    """Raised when starting a session that is already recording."""


def select_supported_mime(backend: Optional[MediaBackend], candidates: Sequence[str]) -> str:
    """Return the first candidate the backend supports, or ``""``."""

    if backend is None:
        return ""
    for mime in candidates:
        if backend.is_type_supported(mime):
            return mime
    return ""


def audio_file_extension(mime_type: str) -> str:
    """File extension the transcription endpoint expects for ``mime_type``."""

    lowered = (mime_type or "").lower()
    if "mp4" in lowered:
        return "mp4"
    if "wav" in lowered:
        return "wav"
    return "webm"


__all__ = [
    "AUDIO_MIME_CANDIDATES",
    "CaptureError",
    "MediaBackend",
    "MediaBlob",
    "MediaError",
    "MediaRecorder",
    "MediaTrack",
    "RECORDER_INACTIVE",
    "RECORDER_RECORDING",
    "RecorderInactiveError",
    "RecorderTimeoutError",
    "RecordingActiveError",
    "VIDEO_MIME_CANDIDATES",
    "audio_file_extension",
    "select_supported_mime",
]
