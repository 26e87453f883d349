"""Mock interview recorder with transcription fallback and AI feedback."""

__version__ = "0.1.0"
