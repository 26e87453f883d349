"""In-memory PCM wave encoding for native audio recordings."""

from __future__ import annotations

import io
import wave
from typing import Iterable

import numpy as np


class WaveBufferWriter:
    """Wave encoder that accepts floating point numpy arrays."""

    def __init__(self, sample_rate: int, channels: int) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self._buffer = io.BytesIO()
        self._wave = wave.open(self._buffer, "wb")
        self._wave.setnchannels(channels)
        self._wave.setsampwidth(2)  # 16-bit PCM
        self._wave.setframerate(sample_rate)
        self._frames_written = 0
        self._closed = False

    def write(self, data: np.ndarray) -> None:
        if data.ndim == 1:
            data = data[:, np.newaxis]
        if data.shape[1] != self.channels:
            if data.shape[1] == 1 and self.channels == 2:
                data = np.repeat(data, 2, axis=1)
            else:
                raise ValueError("Channel mismatch when writing audio")
        clipped = np.clip(data, -1.0, 1.0)
        as_int16 = (clipped * 32767.0).astype(np.int16)
        self._wave.writeframes(as_int16.tobytes())
        self._frames_written += as_int16.shape[0]

    @property
    def frames_written(self) -> int:
        return self._frames_written

    def getvalue(self) -> bytes:
        """Close the wave header and return the encoded file."""

        if not self._closed:
            self._wave.close()
            self._closed = True
        return self._buffer.getvalue()


def encode_wave(chunks: Iterable[np.ndarray], sample_rate: int, channels: int) -> bytes:
    """Encode captured chunks; returns ``b""`` when nothing was captured."""

    writer = WaveBufferWriter(sample_rate, channels)
    for chunk in chunks:
        writer.write(np.asarray(chunk, dtype=np.float32))
    payload = writer.getvalue()
    if writer.frames_written == 0:
        return b""
    return payload


__all__ = ["WaveBufferWriter", "encode_wave"]
