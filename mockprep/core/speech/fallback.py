"""Server-side transcription fallback for when on-device recognition is unusable.

The controller records the microphone track into memory and, when the answer
is finished, posts the audio to the transcription endpoint. Failures after the
recording has been finalized never propagate: the caller receives ``""`` and
must treat it as "no transcript available".
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
from typing import Callable, List, Optional, Protocol, Sequence

from ...logging import get_logger
from ...services.transcription.endpoint_client import TranscriptionRequestError
from ..media.base import (
    AUDIO_MIME_CANDIDATES,
    RECORDER_INACTIVE,
    MediaBackend,
    MediaBlob,
    MediaRecorder,
    MediaTrack,
    RecorderTimeoutError,
    select_supported_mime,
)
from ..media.session import DEFAULT_STOP_TIMEOUT

LOGGER = get_logger(__name__)


class SpeechState(str, enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


class Transcriber(Protocol):
    async def transcribe(self, blob: MediaBlob, language: str) -> str:
        ...


def _noop(*_args) -> None:
    return None


class SpeechFallbackController:
    """Record audio-only answers and transcribe them on the server."""

    def __init__(
        self,
        backend: MediaBackend,
        transcriber: Transcriber,
        *,
        language: str = "en",
        on_transcript: Optional[Callable[[str], None]] = None,
        on_transcribing: Optional[Callable[[bool], None]] = None,
        stop_timeout: float = DEFAULT_STOP_TIMEOUT,
        mime_candidates: Sequence[str] = AUDIO_MIME_CANDIDATES,
    ) -> None:
        self.backend = backend
        self.transcriber = transcriber
        self.language = language
        self.on_transcript = on_transcript or _noop
        self.on_transcribing = on_transcribing or _noop
        self.stop_timeout = stop_timeout
        self.mime_candidates = tuple(mime_candidates)
        self._whisper_mode = False
        self._state = SpeechState.IDLE
        self._recorder: Optional[MediaRecorder] = None
        self._chunks: List[bytes] = []

    @property
    def whisper_mode(self) -> bool:
        return self._whisper_mode

    @property
    def state(self) -> SpeechState:
        return self._state

    def activate_whisper_mode(self) -> None:
        """Switch to server transcription for the rest of the session."""

        if not self._whisper_mode:
            LOGGER.info("On-device recognition unusable; using server transcription")
        self._whisper_mode = True

    def start_recording(self, track: Optional[MediaTrack]) -> None:
        if track is None:
            return
        if self._recorder is not None or self._state is not SpeechState.IDLE:
            LOGGER.warning("Ignoring start_recording while %s", self._state.value)
            return

        mime_type = select_supported_mime(self.backend, self.mime_candidates)
        recorder = self.backend.create_recorder([track], mime_type)
        self._chunks = []
        recorder.start(self._on_data)
        self._recorder = recorder
        self._state = SpeechState.RECORDING

    async def stop_recording(self) -> str:
        recorder = self._recorder
        if recorder is None or recorder.state == RECORDER_INACTIVE:
            return ""

        try:
            await asyncio.wait_for(recorder.stop(), timeout=self.stop_timeout)
        except asyncio.TimeoutError as exc:
            raise RecorderTimeoutError(
                f"Recorder stop timed out after {self.stop_timeout:g} seconds"
            ) from exc
        else:
            blob = MediaBlob(b"".join(self._chunks), recorder.mime_type or "audio/webm")
        finally:
            if recorder.state != RECORDER_INACTIVE:
                with contextlib.suppress(Exception):
                    recorder.close()
            self._reset()

        if blob.size == 0:
            return ""

        self._state = SpeechState.TRANSCRIBING
        self.on_transcribing(True)
        try:
            text = await self.transcriber.transcribe(blob, self.language)
            self._notify_transcript(text)
            return text
        except TranscriptionRequestError as exc:
            LOGGER.warning("Server transcription failed: %s", exc)
            return ""
        except Exception:
            LOGGER.exception("Server transcription raised an unexpected error")
            return ""
        finally:
            self._state = SpeechState.IDLE
            self.on_transcribing(False)

    def cancel_recording(self) -> None:
        """Discard the current recording without transcribing it."""

        recorder = self._recorder
        if recorder is not None and recorder.state != RECORDER_INACTIVE:
            with contextlib.suppress(Exception):
                recorder.close()
        self._reset()

    def _notify_transcript(self, text: str) -> None:
        try:
            self.on_transcript(text)
        except Exception:  # pragma: no cover - callbacks should not break the answer flow
            LOGGER.exception("Transcript callback raised an exception")

    def _on_data(self, chunk: bytes) -> None:
        if chunk:
            self._chunks.append(chunk)

    def _reset(self) -> None:
        self._recorder = None
        self._chunks = []
        self._state = SpeechState.IDLE


__all__ = ["SpeechFallbackController", "SpeechState", "Transcriber"]
