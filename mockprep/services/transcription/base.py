"""Transcription service abstractions."""

from __future__ import annotations

import abc


def normalise_language(language: str | None) -> str:
    """Only Korean and English are transcribed; anything else is English."""

    return "ko" if (language or "").strip().lower() == "ko" else "en"


class TranscriptionError(RuntimeError):
    """Raised by a transcription backend when audio cannot be transcribed."""


class TranscriptionService(abc.ABC):
    """Convert an uploaded audio file into text."""

    @abc.abstractmethod
    async def transcribe(self, audio: bytes, filename: str, language: str = "en") -> str:
        raise NotImplementedError


__all__ = ["TranscriptionError", "TranscriptionService", "normalise_language"]
