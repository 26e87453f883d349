"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class TranscribeResponse(BaseModel):
    text: str


class SpeechRequest(BaseModel):
    text: str = ""
    voice: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str


__all__ = ["ErrorResponse", "SpeechRequest", "TranscribeResponse"]
