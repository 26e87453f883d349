"""Speaker playback powered by soundfile decoding and sounddevice output."""

from __future__ import annotations

import asyncio
import contextlib
import io
import threading
from typing import Callable, Optional

import numpy as np

from ...logging import get_logger
from .base import AudioPlayer, PlaybackBlockedError, PlaybackError

LOGGER = get_logger(__name__)


class SoundDevicePlayer(AudioPlayer):
    """Play one decoded clip through a PortAudio output stream."""

    def __init__(self, device: Optional[int | str] = None) -> None:
        try:
            import sounddevice as sd
            import soundfile as sf
        except (ImportError, OSError) as exc:  # pragma: no cover - PortAudio/libsndfile missing
            raise PlaybackBlockedError("sounddevice and soundfile are required for playback") from exc
        self._sd = sd
        self._sf = sf
        self.device = device
        self._stream = None
        self._data: Optional[np.ndarray] = None
        self._sample_rate = 0
        self._position = 0
        self._paused = False
        self._error: Optional[BaseException] = None
        self._lock = threading.Lock()

    async def play(
        self,
        audio: bytes,
        mime_type: str,
        on_ended: Callable[[], None],
        on_error: Callable[[], None],
    ) -> None:
        try:
            data, sample_rate = self._sf.read(io.BytesIO(audio), dtype="float32", always_2d=True)
        except (RuntimeError, TypeError, ValueError) as exc:
            raise PlaybackError(f"Cannot decode {mime_type or 'audio'}: {exc}") from exc

        self.close()
        loop = asyncio.get_running_loop()
        self._data = data
        self._sample_rate = int(sample_rate)
        self._position = 0
        self._paused = False
        self._error = None

        def _finished() -> None:  # pragma: no cover - PortAudio thread
            if self._paused:
                return
            callback = on_error if self._error is not None else on_ended
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(callback)

        try:
            stream = self._sd.OutputStream(
                samplerate=self._sample_rate,
                channels=data.shape[1],
                dtype="float32",
                device=self.device,
                callback=self._callback,
                finished_callback=_finished,
            )
            stream.start()
        except self._sd.PortAudioError as exc:
            raise PlaybackBlockedError(f"Audio output unavailable: {exc}") from exc

        self._stream = stream
        LOGGER.debug("Playing %.1f s of audio", data.shape[0] / float(self._sample_rate or 1))

    def _callback(self, outdata, frames, time_info, status) -> None:  # pragma: no cover - PortAudio thread
        try:
            with self._lock:
                data = self._data
                start = self._position
                chunk = data[start : start + frames] if data is not None else data
                count = 0 if chunk is None else len(chunk)
                if count:
                    outdata[:count] = chunk
                outdata[count:] = 0
                self._position = start + count
        except Exception as exc:
            self._error = exc
            raise self._sd.CallbackAbort from exc
        if count < frames:
            raise self._sd.CallbackStop

    def pause(self) -> None:
        self._paused = True
        if self._stream is not None:
            with contextlib.suppress(Exception):
                self._stream.stop()

    def seek(self, seconds: float) -> None:
        with self._lock:
            self._position = max(int(seconds * self._sample_rate), 0)

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            self._paused = True
            with contextlib.suppress(Exception):
                stream.close()


__all__ = ["SoundDevicePlayer"]
