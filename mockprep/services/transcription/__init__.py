"""Transcription services."""

from .base import TranscriptionError, TranscriptionService
from .dummy import DummyTranscriptionService
from .endpoint_client import TranscriptionEndpointClient, TranscriptionRequestError

__all__ = [
    "DummyTranscriptionService",
    "TranscriptionEndpointClient",
    "TranscriptionError",
    "TranscriptionRequestError",
    "TranscriptionService",
]
