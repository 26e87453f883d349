"""Dummy speech service for testing or offline usage."""

from __future__ import annotations

from .base import DEFAULT_VOICE, SpeechService


class DummySpeechService(SpeechService):
    """Returns a fixed payload instead of audio; players will report an error and move on."""

    def __init__(self, payload: bytes = b"ID3") -> None:
        self.payload = payload
        self.requests: list[tuple[str, str]] = []

    async def synthesize(self, text: str, voice: str = DEFAULT_VOICE) -> bytes:
        self.requests.append((text, voice))
        return self.payload


__all__ = ["DummySpeechService"]
