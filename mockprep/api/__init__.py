"""HTTP endpoints backing transcription and speech synthesis."""

from .app import create_app

__all__ = ["create_app"]
