"""Microphone-only recording powered by sounddevice/PortAudio."""

from __future__ import annotations

import asyncio
import contextlib
import threading
from typing import Callable, List, Optional, Sequence

import numpy as np

from ...logging import get_logger
from .base import (
    RECORDER_INACTIVE,
    RECORDER_RECORDING,
    CaptureError,
    MediaBackend,
    MediaRecorder,
    MediaTrack,
    RecorderInactiveError,
)
from .writers import encode_wave

LOGGER = get_logger(__name__)

WAV_MIME_TYPE = "audio/wav"


def _parse_device(device: Optional[str]) -> Optional[int | str]:
    if device is None:
        return None
    device = device.strip()
    if not device or device.lower() == "default":
        return None
    if device.isdigit():
        return int(device)
    return device


class SoundDeviceRecorder(MediaRecorder):
    """Collect float32 blocks from an input stream and emit one wave file."""

    def __init__(
        self,
        sd_module,
        track: MediaTrack,
        *,
        sample_rate: int = 16_000,
        channels: int = 1,
        block_size: int = 1024,
    ) -> None:
        self._sd = sd_module
        self.track = track
        self.mime_type = WAV_MIME_TYPE
        self.sample_rate = sample_rate
        self.channels = channels
        self._block_size = block_size
        self._device = _parse_device(track.device)
        self._stream = None
        self._blocks: List[np.ndarray] = []
        self._lock = threading.Lock()
        self._on_data: Optional[Callable[[bytes], None]] = None

    @property
    def state(self) -> str:
        return RECORDER_RECORDING if self._stream is not None else RECORDER_INACTIVE

    def _callback(self, indata, frames, time_info, status) -> None:  # pragma: no cover - PortAudio thread
        if status:
            LOGGER.warning("sounddevice status: %s", status)
        with self._lock:
            self._blocks.append(indata.copy())

    def start(self, on_data: Callable[[bytes], None]) -> None:
        if self._stream is not None:
            return
        LOGGER.info("Starting microphone capture on %s", self._device if self._device is not None else "default")
        try:
            stream = self._sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                blocksize=self._block_size,
                device=self._device,
                callback=self._callback,
            )
            stream.start()
        except self._sd.PortAudioError as exc:
            raise CaptureError(f"Failed to open microphone {self.track.device}: {exc}") from exc
        self._blocks = []
        self._on_data = on_data
        self._stream = stream

    async def stop(self) -> None:
        stream = self._stream
        if stream is None:
            raise RecorderInactiveError("Recorder not active")
        # stop() waits for pending PortAudio buffers, keep it off the loop.
        try:
            await asyncio.to_thread(stream.stop)
        except self._sd.PortAudioError as exc:
            self.close()
            raise CaptureError(f"Failed to finalize microphone {self.track.device}: {exc}") from exc
        self._release()
        with self._lock:
            blocks, self._blocks = self._blocks, []
        payload = encode_wave(blocks, self.sample_rate, self.channels)
        if self._on_data is not None and payload:
            self._on_data(payload)

    def close(self) -> None:
        stream = self._stream
        if stream is not None:
            with contextlib.suppress(Exception):
                stream.abort()
        self._release()
        with self._lock:
            self._blocks = []

    def _release(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            with contextlib.suppress(Exception):
                stream.close()


class SoundDeviceMediaBackend(MediaBackend):
    """Audio-only backend; video tracks are rejected."""

    name = "sounddevice"

    def __init__(self, *, sample_rate: int = 16_000, channels: int = 1) -> None:
        try:
            import sounddevice as sd
        except (ImportError, OSError) as exc:  # pragma: no cover - PortAudio missing
            raise CaptureError("sounddevice dependency is required for microphone capture") from exc
        self._sd = sd
        self.sample_rate = sample_rate
        self.channels = channels

    def is_type_supported(self, mime_type: str) -> bool:
        base = (mime_type or "").split(";", 1)[0].strip().lower()
        return base in {"audio/wav", "audio/x-wav", "audio/wave"}

    def create_recorder(self, tracks: Sequence[MediaTrack], mime_type: str = "") -> MediaRecorder:
        if mime_type and not self.is_type_supported(mime_type):
            raise CaptureError(f"sounddevice backend cannot encode {mime_type}")
        audio = [track for track in tracks if track.kind == "audio"]
        if len(audio) != 1 or len(tracks) != 1:
            raise CaptureError("sounddevice backend records exactly one audio track")
        return SoundDeviceRecorder(
            self._sd,
            audio[0],
            sample_rate=self.sample_rate,
            channels=self.channels,
        )


__all__ = ["SoundDeviceMediaBackend", "SoundDeviceRecorder", "WAV_MIME_TYPE"]
