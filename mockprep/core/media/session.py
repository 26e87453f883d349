"""Camera and microphone recording into an in-memory buffer."""

from __future__ import annotations

import asyncio
import contextlib
from typing import List, Optional, Sequence

from ...logging import get_logger
from .base import (
    RECORDER_INACTIVE,
    VIDEO_MIME_CANDIDATES,
    MediaBackend,
    MediaBlob,
    MediaRecorder,
    MediaTrack,
    RecorderInactiveError,
    RecorderTimeoutError,
    RecordingActiveError,
    select_supported_mime,
)

LOGGER = get_logger(__name__)

DEFAULT_STOP_TIMEOUT = 5.0


class RecordingSession:
    """Record a video and audio track pair until stopped.

    Only one recording may be active per session; calling :meth:`start` while
    recording raises :class:`RecordingActiveError` and leaves the running
    recording untouched.
    """

    def __init__(
        self,
        backend: MediaBackend,
        video_track: MediaTrack,
        audio_track: MediaTrack,
        *,
        stop_timeout: float = DEFAULT_STOP_TIMEOUT,
        mime_candidates: Sequence[str] = VIDEO_MIME_CANDIDATES,
    ) -> None:
        self.backend = backend
        self.video_track = video_track
        self.audio_track = audio_track
        self.stop_timeout = stop_timeout
        self.mime_candidates = tuple(mime_candidates)
        self._recorder: Optional[MediaRecorder] = None
        self._chunks: List[bytes] = []
        self._active = False

    def start(self) -> None:
        if self._active:
            raise RecordingActiveError("A recording is already in progress")

        mime_type = select_supported_mime(self.backend, self.mime_candidates)
        recorder = self.backend.create_recorder([self.video_track, self.audio_track], mime_type)
        self._chunks = []
        recorder.start(self._on_data)
        self._recorder = recorder
        self._active = True
        LOGGER.info("Recording started (%s)", mime_type or "backend default")

    async def stop(self) -> MediaBlob:
        recorder = self._recorder
        if recorder is None or recorder.state == RECORDER_INACTIVE:
            self._active = False
            raise RecorderInactiveError("Recorder not active")

        try:
            await asyncio.wait_for(recorder.stop(), timeout=self.stop_timeout)
        except asyncio.TimeoutError as exc:
            raise RecorderTimeoutError(
                f"Recorder stop timed out after {self.stop_timeout:g} seconds"
            ) from exc
        else:
            blob = MediaBlob(b"".join(self._chunks), recorder.mime_type or "video/webm")
            LOGGER.info("Recording finalized: %d bytes of %s", blob.size, blob.mime_type)
            return blob
        finally:
            if recorder.state != RECORDER_INACTIVE:
                with contextlib.suppress(Exception):
                    recorder.close()
            self._reset()

    def is_active(self) -> bool:
        return self._active

    def cleanup(self) -> None:
        """Stop any recording without producing a result."""

        recorder = self._recorder
        if recorder is not None and recorder.state != RECORDER_INACTIVE:
            with contextlib.suppress(Exception):
                recorder.close()
        self._reset()

    def _on_data(self, chunk: bytes) -> None:
        if chunk:
            self._chunks.append(chunk)

    def _reset(self) -> None:
        self._active = False
        self._chunks = []
        self._recorder = None


__all__ = ["DEFAULT_STOP_TIMEOUT", "RecordingSession"]
