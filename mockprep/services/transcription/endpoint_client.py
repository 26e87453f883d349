"""HTTP client for the transcription endpoint."""

from __future__ import annotations

from typing import Optional

import httpx

from ...config import get_settings
from ...core.media.base import MediaBlob, audio_file_extension
from ...logging import get_logger

LOGGER = get_logger(__name__)


class TranscriptionRequestError(RuntimeError):
    """Raised when the transcription endpoint cannot produce a transcript."""


class TranscriptionEndpointClient:
    """Post recorded audio as multipart form data and return the text."""

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        settings = get_settings()
        self.url = url or settings.transcribe_url
        self._client = client or httpx.AsyncClient(timeout=timeout or settings.transcription_timeout)

    async def transcribe(self, blob: MediaBlob, language: str) -> str:
        extension = audio_file_extension(blob.mime_type)
        files = {"audio": (f"recording.{extension}", blob.data, blob.mime_type or f"audio/{extension}")}
        try:
            response = await self._client.post(self.url, files=files, data={"language": language})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise TranscriptionRequestError(
                f"Transcription API error: {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TranscriptionRequestError(f"Transcription request failed: {exc}") from exc
        except ValueError as exc:
            raise TranscriptionRequestError(f"Invalid transcription response: {exc}") from exc

        if not isinstance(payload, dict):
            raise TranscriptionRequestError("Invalid transcription response: expected an object")
        return str(payload.get("text") or "")

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["TranscriptionEndpointClient", "TranscriptionRequestError"]
