"""Audio playback abstractions."""

from __future__ import annotations

import abc
from typing import Callable


class PlaybackError(RuntimeError):
    """Raised when audio cannot be decoded or played."""


class PlaybackBlockedError(PlaybackError):
    """Raised when the platform refuses to start playback (no output device, autoplay policy)."""


class AudioPlayer(abc.ABC):
    """Single-clip player driven by completion callbacks.

    ``play`` returns once playback has started. Exactly one of ``on_ended`` or
    ``on_error`` is invoked on the event loop when the clip stops on its own;
    ``pause`` does not invoke either.
    """

    @abc.abstractmethod
    async def play(
        self,
        audio: bytes,
        mime_type: str,
        on_ended: Callable[[], None],
        on_error: Callable[[], None],
    ) -> None:
        """Start playback or raise :class:`PlaybackError`."""

    @abc.abstractmethod
    def pause(self) -> None:
        """Pause playback, keeping the current position."""

    @abc.abstractmethod
    def seek(self, seconds: float) -> None:
        """Move the playback position."""

    def close(self) -> None:
        """Release the output device."""


__all__ = ["AudioPlayer", "PlaybackBlockedError", "PlaybackError"]
