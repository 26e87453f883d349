"""FastAPI application serving the transcription and TTS endpoints."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, UploadFile
from fastapi.responses import JSONResponse, Response

from ..config import get_settings
from ..logging import get_logger
from ..services.factory import resolve_speech_backend, resolve_transcription_backend
from ..services.transcription.base import TranscriptionService, normalise_language
from ..services.tts.base import DEFAULT_VOICE, SpeechService
from .schemas import SpeechRequest, TranscribeResponse

LOGGER = get_logger(__name__)


@lru_cache(maxsize=1)
def get_transcription_service() -> Optional[TranscriptionService]:
    return resolve_transcription_backend(get_settings().transcription_backend)


@lru_cache(maxsize=1)
def get_speech_service() -> Optional[SpeechService]:
    return resolve_speech_backend(get_settings().speech_backend)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app() -> FastAPI:
    app = FastAPI(title="mockprep", version="0.1.0")

    @app.get("/healthz")
    async def healthz() -> dict:
        return {"ok": True}

    @app.post("/api/transcribe", response_model=TranscribeResponse)
    async def transcribe(
        audio: Optional[UploadFile] = File(None),
        language: Optional[str] = Form(None),
        service: Optional[TranscriptionService] = Depends(get_transcription_service),
    ):
        if audio is None:
            return _error(400, "No audio file provided")
        if service is None:
            LOGGER.error("Transcription requested but no transcription backend is configured")
            return _error(500, "Transcription failed")

        try:
            data = await audio.read()
            text = await service.transcribe(
                data,
                audio.filename or "recording.webm",
                normalise_language(language or "en"),
            )
        except Exception:
            LOGGER.exception("Transcription failed")
            return _error(500, "Transcription failed")
        return TranscribeResponse(text=text)

    @app.post("/api/tts")
    async def tts(
        body: SpeechRequest,
        service: Optional[SpeechService] = Depends(get_speech_service),
    ):
        if service is None:
            LOGGER.error("Speech requested but no speech backend is configured")
            return _error(500, "Speech synthesis failed")

        try:
            audio = await service.synthesize(body.text or "", body.voice or DEFAULT_VOICE)
        except Exception:
            LOGGER.exception("Speech synthesis failed")
            return _error(500, "Speech synthesis failed")
        return Response(content=audio, media_type="audio/mpeg")

    return app


__all__ = ["create_app", "get_speech_service", "get_transcription_service"]
