"""Factories for runtime service selection."""

from __future__ import annotations

from typing import Optional

from ..config import Settings, get_settings
from .feedback.base import FeedbackService
from .feedback.dummy import DummyFeedbackService
from .feedback.openai_feedback import OpenAIFeedbackService
from .storage.supabase import SupabaseObjectStorage
from .storage.video_upload import VideoUploader
from .transcription.base import TranscriptionService
from .transcription.dummy import DummyTranscriptionService
from .transcription.openai_client import OpenAITranscriptionService
from .tts.base import SpeechService
from .tts.dummy import DummySpeechService
from .tts.openai_tts import OpenAISpeechService


class ServiceConfigurationError(ValueError):
    """Raised when an unknown backend is requested."""


def _normalise(name: Optional[str]) -> str:
    if not name:
        return "none"
    return name.strip().lower()


def resolve_transcription_backend(name: Optional[str]) -> Optional[TranscriptionService]:
    backend = _normalise(name)
    if backend in {"", "none", "off"}:
        return None
    if backend == "dummy":
        return DummyTranscriptionService()
    if backend == "openai":
        return OpenAITranscriptionService()
    raise ServiceConfigurationError(f"Unknown transcription backend: {name}")


def resolve_speech_backend(name: Optional[str]) -> Optional[SpeechService]:
    backend = _normalise(name)
    if backend in {"", "none", "off"}:
        return None
    if backend == "dummy":
        return DummySpeechService()
    if backend == "openai":
        return OpenAISpeechService()
    raise ServiceConfigurationError(f"Unknown speech backend: {name}")


def resolve_feedback_backend(name: Optional[str]) -> Optional[FeedbackService]:
    backend = _normalise(name)
    if backend in {"", "none", "off"}:
        return None
    if backend == "dummy":
        return DummyFeedbackService()
    if backend == "openai":
        return OpenAIFeedbackService()
    raise ServiceConfigurationError(f"Unknown feedback backend: {name}")


def create_video_uploader(settings: Optional[Settings] = None) -> Optional[VideoUploader]:
    """Return an uploader when object storage is configured."""

    settings = settings or get_settings()
    if not settings.supabase_url or not settings.supabase_key:
        return None
    return VideoUploader(SupabaseObjectStorage.from_settings(settings), max_bytes=settings.max_video_bytes)


__all__ = [
    "ServiceConfigurationError",
    "create_video_uploader",
    "resolve_feedback_backend",
    "resolve_speech_backend",
    "resolve_transcription_backend",
]
