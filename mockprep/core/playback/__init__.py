"""Audio playback package."""

from .base import AudioPlayer, PlaybackBlockedError, PlaybackError

__all__ = ["AudioPlayer", "PlaybackBlockedError", "PlaybackError"]
