"""Speech synthesis service abstractions."""

from __future__ import annotations

import abc

DEFAULT_VOICE = "nova"


class SpeechSynthesisError(RuntimeError):
    """Raised when synthesized audio cannot be produced or fetched."""


class SpeechService(abc.ABC):
    """Turn text into MP3 audio."""

    @abc.abstractmethod
    async def synthesize(self, text: str, voice: str = DEFAULT_VOICE) -> bytes:
        raise NotImplementedError


__all__ = ["DEFAULT_VOICE", "SpeechService", "SpeechSynthesisError"]
