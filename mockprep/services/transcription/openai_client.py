"""OpenAI powered transcription service."""

from __future__ import annotations

from typing import Any, Optional

from ...config import get_settings
from ...logging import get_logger
from .base import TranscriptionError, TranscriptionService, normalise_language

LOGGER = get_logger(__name__)


class OpenAITranscriptionService(TranscriptionService):
    def __init__(self, model: Optional[str] = None, timeout: Optional[float] = None, client: Any = None) -> None:
        settings = get_settings()
        self.model = model or settings.openai_transcription_model
        try:
            from openai import AsyncOpenAI, OpenAIError  # type: ignore
        except ImportError as exc:  # pragma: no cover - runtime dependency guard
            raise RuntimeError("openai package is required for OpenAITranscriptionService") from exc
        self._openai_error_cls = OpenAIError

        if client is not None:
            self.client = client
            return

        client_kwargs: dict = {"timeout": timeout or settings.transcription_timeout}
        if settings.openai_api_key:
            client_kwargs["api_key"] = settings.openai_api_key
        try:
            self.client = AsyncOpenAI(**client_kwargs)
        except OpenAIError as exc:
            message = str(exc)
            if "api_key" in message.lower():
                raise RuntimeError(
                    "OpenAI API key not configured. Set the OPENAI_API_KEY environment variable "
                    "or MOCKPREP_OPENAI_API_KEY."
                ) from exc
            raise RuntimeError(f"Failed to initialise OpenAI transcription client: {message}") from exc

    async def transcribe(self, audio: bytes, filename: str, language: str = "en") -> str:
        LOGGER.info("Requesting OpenAI transcription for %s (%d bytes)", filename, len(audio))
        try:
            response = await self.client.audio.transcriptions.create(
                file=(filename, audio),
                model=self.model,
                language=normalise_language(language),
                response_format="json",
            )
        except self._openai_error_cls as exc:
            raise TranscriptionError(str(exc)) from exc
        return self._parse_transcription_response(response)

    def _parse_transcription_response(self, response: Any) -> str:
        if response is None:
            return ""
        if isinstance(response, str):
            return response
        if isinstance(response, dict):
            return str(response.get("text", "") or "")
        return str(getattr(response, "text", "") or "")

    async def aclose(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()


__all__ = ["OpenAITranscriptionService"]
