"""HTTP client for the text-to-speech endpoint."""

from __future__ import annotations

from typing import Optional

import httpx

from ...config import get_settings
from .base import SpeechSynthesisError


class SpeechSynthesisClient:
    def __init__(
        self,
        url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        settings = get_settings()
        self.url = url or settings.tts_url
        self._client = client or httpx.AsyncClient(timeout=timeout or settings.tts_timeout)

    async def synthesize(self, text: str, voice: str) -> bytes:
        """Return MP3 bytes for ``text`` spoken by ``voice``."""

        try:
            response = await self._client.post(self.url, json={"text": text, "voice": voice})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SpeechSynthesisError(f"TTS API error: {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise SpeechSynthesisError(f"TTS request failed: {exc}") from exc
        return response.content

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["SpeechSynthesisClient"]
