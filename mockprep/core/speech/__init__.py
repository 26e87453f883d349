"""Speech recognition and transcription fallback."""

from .fallback import SpeechFallbackController, SpeechState
from .recognition import (
    DummySpeechRecognizer,
    RecognitionUnavailableError,
    SpeechRecognizer,
    UnsupportedSpeechRecognizer,
)

__all__ = [
    "DummySpeechRecognizer",
    "RecognitionUnavailableError",
    "SpeechFallbackController",
    "SpeechRecognizer",
    "SpeechState",
    "UnsupportedSpeechRecognizer",
]
