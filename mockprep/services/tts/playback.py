"""Read interview prompts aloud through the text-to-speech endpoint.

Natural completion, playback errors, blocked playback and synthesis failures
all settle the :class:`PlaybackHandle` through the same terminal signal, so a
sequence waiting on the prompt (a countdown, the start of recording) can never
stall.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional, Protocol

from ...core.playback.base import AudioPlayer, PlaybackError
from ...logging import get_logger
from .base import SpeechSynthesisError

LOGGER = get_logger(__name__)

MALE_VOICE = "onyx"
FEMALE_VOICE = "nova"


class Synthesizer(Protocol):
    async def synthesize(self, text: str, voice: str) -> bytes:
        ...


def voice_for_gender(gender: Optional[str]) -> str:
    return MALE_VOICE if (gender or "").strip().lower() == "male" else FEMALE_VOICE


class PlaybackHandle:
    """One in-flight playback with a single terminal signal."""

    def __init__(self, player: Optional[AudioPlayer] = None) -> None:
        self.onended: Optional[Callable[[], None]] = None
        self._player = player
        self._loop = asyncio.get_running_loop()
        self._done: asyncio.Future = self._loop.create_future()

    @property
    def finished(self) -> bool:
        return self._done.done()

    async def wait(self) -> None:
        """Resolve once playback ended, failed or was cancelled."""

        await asyncio.shield(self._done)

    def cancel(self) -> None:
        """Pause and rewind; ``onended`` is not invoked."""

        if self._player is not None:
            self._player.pause()
            self._player.seek(0.0)
        if not self._done.done():
            self._done.set_result(None)

    def _finish(self) -> None:
        if self._done.done():
            return
        self._done.set_result(None)
        callback = self.onended
        if callback is None:
            return
        try:
            callback()
        except Exception:  # pragma: no cover - callbacks should not break the interview flow
            LOGGER.exception("Playback onended callback raised an exception")

    def _finish_soon(self) -> None:
        self._loop.call_soon(self._finish)


async def speak_with_cloud_tts(
    text: str,
    gender: Optional[str],
    *,
    client: Synthesizer,
    player: AudioPlayer,
) -> PlaybackHandle:
    voice = voice_for_gender(gender)
    handle = PlaybackHandle(player)

    try:
        audio = await client.synthesize(text, voice)
    except SpeechSynthesisError as exc:
        LOGGER.warning("Speech synthesis failed; skipping prompt audio: %s", exc)
        handle._finish_soon()
        return handle

    try:
        await player.play(audio, "audio/mpeg", on_ended=handle._finish, on_error=handle._finish)
    except PlaybackError as exc:
        LOGGER.warning("Playback blocked; continuing without prompt audio: %s", exc)
        handle._finish_soon()
    return handle


__all__ = [
    "FEMALE_VOICE",
    "MALE_VOICE",
    "PlaybackHandle",
    "speak_with_cloud_tts",
    "voice_for_gender",
]
