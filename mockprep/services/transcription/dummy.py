"""Dummy transcription service for testing or offline usage."""

from __future__ import annotations

from .base import TranscriptionService, normalise_language


class DummyTranscriptionService(TranscriptionService):
    def __init__(self, text: str | None = None) -> None:
        self.text = text

    async def transcribe(self, audio: bytes, filename: str, language: str = "en") -> str:
        if self.text is not None:
            return self.text
        return (
            f"Dummy {normalise_language(language)} transcript for {filename} "
            f"({len(audio)} bytes). Replace with a real transcription backend."
        )


__all__ = ["DummyTranscriptionService"]
