"""On-device speech recognition abstractions."""

from __future__ import annotations

import abc
import asyncio

from ..media.base import MediaTrack


class RecognitionUnavailableError(RuntimeError):
    """Raised when on-device recognition is denied or stops working."""


class SpeechRecognizer(abc.ABC):
    """Continuous recognition of one audio track."""

    @abc.abstractmethod
    def is_supported(self) -> bool:
        """Return ``True`` if recognition can run on this platform."""

    @abc.abstractmethod
    async def listen(self, track: MediaTrack, stop: asyncio.Event, language: str) -> str:
        """Recognise speech until ``stop`` is set and return the transcript."""


class UnsupportedSpeechRecognizer(SpeechRecognizer):
    """Placeholder for platforms without an on-device engine."""

    def is_supported(self) -> bool:
        return False

    async def listen(self, track: MediaTrack, stop: asyncio.Event, language: str) -> str:
        raise RecognitionUnavailableError("On-device speech recognition is not available")


class DummySpeechRecognizer(SpeechRecognizer):
    """Returns a fixed transcript once the answer is stopped."""

    def __init__(self, text: str = "Dummy transcript from on-device recognition.") -> None:
        self.text = text

    def is_supported(self) -> bool:
        return True

    async def listen(self, track: MediaTrack, stop: asyncio.Event, language: str) -> str:
        await stop.wait()
        return self.text


__all__ = [
    "DummySpeechRecognizer",
    "RecognitionUnavailableError",
    "SpeechRecognizer",
    "UnsupportedSpeechRecognizer",
]
