"""Shared fakes and fixtures for the mockprep test-suite."""

from __future__ import annotations

import asyncio
import os
from typing import Callable, Iterable, List, Optional, Sequence

import pytest

from mockprep import config
from mockprep.core.media.base import (
    RECORDER_INACTIVE,
    RECORDER_RECORDING,
    MediaBackend,
    MediaBlob,
    MediaRecorder,
    MediaTrack,
)
from mockprep.core.playback.base import AudioPlayer, PlaybackBlockedError
from mockprep.data.models import Competencies, Feedback
from mockprep.services.feedback.base import FeedbackService
from mockprep.services.storage.base import ObjectStorage, StorageError


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch, tmp_path):
    """Ensure each test starts with a clean configuration environment."""

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config, "_ENV_PATH", tmp_path / ".env")
    monkeypatch.setattr(config, "_settings", None)

    for key in list(os.environ):
        if key.startswith("MOCKPREP_"):
            monkeypatch.delenv(key, raising=False)

    yield


class FakeRecorder(MediaRecorder):
    def __init__(
        self,
        mime_type: str,
        chunks: Iterable[bytes],
        *,
        hang: bool = False,
        stop_error: Optional[Exception] = None,
        close_error: Optional[Exception] = None,
    ) -> None:
        self.mime_type = mime_type
        self.chunks = list(chunks)
        self.hang = hang
        self.stop_error = stop_error
        self.close_error = close_error
        self.closed = False
        self.stop_calls = 0
        self._state = RECORDER_INACTIVE
        self._on_data: Optional[Callable[[bytes], None]] = None

    @property
    def state(self) -> str:
        return self._state

    def start(self, on_data: Callable[[bytes], None]) -> None:
        self._on_data = on_data
        self._state = RECORDER_RECORDING

    async def stop(self) -> None:
        self.stop_calls += 1
        if self.hang:
            await asyncio.Event().wait()
        if self.stop_error is not None:
            raise self.stop_error
        for chunk in self.chunks:
            self._on_data(chunk)
        self._state = RECORDER_INACTIVE

    def close(self) -> None:
        self.closed = True
        self._state = RECORDER_INACTIVE
        if self.close_error is not None:
            raise self.close_error


class FakeBackend(MediaBackend):
    name = "fake"

    def __init__(
        self,
        supported: Sequence[str] = ("video/webm;codecs=vp9,opus", "audio/webm;codecs=opus"),
        chunks: Iterable[bytes] = (b"chunk-1", b"", b"chunk-2"),
        *,
        hang: bool = False,
        stop_error: Optional[Exception] = None,
        close_error: Optional[Exception] = None,
    ) -> None:
        self.supported = set(supported)
        self.chunks = list(chunks)
        self.hang = hang
        self.stop_error = stop_error
        self.close_error = close_error
        self.recorders: List[FakeRecorder] = []
        self.requested_tracks: List[List[MediaTrack]] = []

    def is_type_supported(self, mime_type: str) -> bool:
        return mime_type in self.supported

    def create_recorder(self, tracks: Sequence[MediaTrack], mime_type: str = "") -> MediaRecorder:
        recorder = FakeRecorder(
            mime_type,
            self.chunks,
            hang=self.hang,
            stop_error=self.stop_error,
            close_error=self.close_error,
        )
        self.recorders.append(recorder)
        self.requested_tracks.append(list(tracks))
        return recorder


class FakeTranscriber:
    def __init__(self, text: str = "transcribed answer", error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.calls: List[tuple[MediaBlob, str]] = []

    async def transcribe(self, blob: MediaBlob, language: str) -> str:
        self.calls.append((blob, language))
        if self.error is not None:
            raise self.error
        return self.text


class FakePlayer(AudioPlayer):
    """Completes playback on the next loop iteration, or refuses to start."""

    def __init__(self, mode: str = "ended") -> None:
        self.mode = mode
        self.played: List[tuple[bytes, str]] = []
        self.paused = False
        self.position: Optional[float] = None

    async def play(self, audio, mime_type, on_ended, on_error) -> None:
        if self.mode == "blocked":
            raise PlaybackBlockedError("autoplay blocked")
        self.played.append((audio, mime_type))
        loop = asyncio.get_running_loop()
        if self.mode == "ended":
            loop.call_soon(on_ended)
        elif self.mode == "error":
            loop.call_soon(on_error)

    def pause(self) -> None:
        self.paused = True

    def seek(self, seconds: float) -> None:
        self.position = seconds


class MemoryStorage(ObjectStorage):
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.uploads: List[dict] = []

    async def upload(self, path: str, data: bytes, *, content_type: str, upsert: bool = False) -> None:
        if self.fail:
            raise StorageError("bucket unavailable")
        self.uploads.append({"path": path, "size": len(data), "content_type": content_type, "upsert": upsert})

    def public_url(self, path: str) -> str:
        return f"https://storage.test/public/{path}"


def make_feedback(rating: int = 4) -> Feedback:
    return Feedback(
        rating=rating,
        competencies=Competencies(
            technical_knowledge=rating,
            communication_clarity=rating,
            problem_solving=rating,
            relevance=rating,
        ),
        strengths="Clear structure.",
        improvements="Mention idempotency.",
        suggested_answer="REST APIs model resources with nouns and use HTTP verbs.",
    )


class StaticFeedbackService(FeedbackService):
    def __init__(self, feedback: Optional[Feedback] = None, error: Optional[Exception] = None) -> None:
        self.feedback = feedback or make_feedback()
        self.error = error
        self.calls: List[tuple] = []

    async def evaluate(self, question, correct_answer, user_answer, language=None) -> Feedback:
        self.calls.append((question, correct_answer, user_answer, language))
        if self.error is not None:
            raise self.error
        return self.feedback
