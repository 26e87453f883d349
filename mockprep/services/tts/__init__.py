"""Text-to-speech services and prompt playback."""

from .base import DEFAULT_VOICE, SpeechService, SpeechSynthesisError
from .client import SpeechSynthesisClient
from .dummy import DummySpeechService
from .playback import PlaybackHandle, speak_with_cloud_tts, voice_for_gender

__all__ = [
    "DEFAULT_VOICE",
    "DummySpeechService",
    "PlaybackHandle",
    "SpeechService",
    "SpeechSynthesisClient",
    "SpeechSynthesisError",
    "speak_with_cloud_tts",
    "voice_for_gender",
]
