"""OpenAI powered speech synthesis."""

from __future__ import annotations

from typing import Any, Optional

from ...config import get_settings
from ...logging import get_logger
from .base import DEFAULT_VOICE, SpeechService, SpeechSynthesisError

LOGGER = get_logger(__name__)


class OpenAISpeechService(SpeechService):
    def __init__(self, model: Optional[str] = None, timeout: Optional[float] = None, client: Any = None) -> None:
        settings = get_settings()
        self.model = model or settings.openai_tts_model
        try:
            from openai import AsyncOpenAI, OpenAIError  # type: ignore
        except ImportError as exc:  # pragma: no cover - runtime dependency guard
            raise RuntimeError("openai package is required for OpenAISpeechService") from exc
        self._openai_error_cls = OpenAIError

        if client is not None:
            self.client = client
            return

        client_kwargs: dict = {"timeout": timeout or settings.tts_timeout}
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
            raise RuntimeError(f"Failed to initialise OpenAI speech client: {message}") from exc

    async def synthesize(self, text: str, voice: str = DEFAULT_VOICE) -> bytes:
        LOGGER.info("Requesting OpenAI speech (%s, %d characters)", voice, len(text))
        try:
            response = await self.client.audio.speech.create(
                model=self.model,
                voice=voice or DEFAULT_VOICE,
                input=text or "",
                response_format="mp3",
            )
        except self._openai_error_cls as exc:
            raise SpeechSynthesisError(str(exc)) from exc
        return response.content

    async def aclose(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()


__all__ = ["OpenAISpeechService"]
