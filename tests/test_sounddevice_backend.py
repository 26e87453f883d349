import io
import sys
import types
import wave

import numpy as np
import pytest

from mockprep.core.media.base import CaptureError, MediaTrack, RecorderInactiveError
from mockprep.core.media.sounddevice_backend import SoundDeviceMediaBackend, SoundDeviceRecorder
from mockprep.core.media.writers import WaveBufferWriter, encode_wave


class FakeInputStream:
    instances = []

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.started = False
        self.stopped = False
        self.aborted = False
        self.closed = False
        FakeInputStream.instances.append(self)

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def abort(self) -> None:
        self.aborted = True

    def close(self) -> None:
        self.closed = True


class FakePortAudioError(Exception):
    pass


@pytest.fixture()
def fake_sd(monkeypatch):
    FakeInputStream.instances = []
    module = types.SimpleNamespace(InputStream=FakeInputStream, PortAudioError=FakePortAudioError)
    monkeypatch.setitem(sys.modules, "sounddevice", module)
    return module


def test_encode_wave_returns_empty_without_frames() -> None:
    assert encode_wave([], 16_000, 1) == b""


def test_wave_writer_converts_float_samples() -> None:
    writer = WaveBufferWriter(16_000, 2)
    writer.write(np.array([0.0, 0.5, -2.0], dtype=np.float32))

    with wave.open(io.BytesIO(writer.getvalue()), "rb") as handle:
        assert handle.getnchannels() == 2
        assert handle.getframerate() == 16_000
        assert handle.getnframes() == 3
    assert writer.frames_written == 3


def test_wave_writer_rejects_channel_mismatch() -> None:
    writer = WaveBufferWriter(16_000, 1)
    with pytest.raises(ValueError):
        writer.write(np.zeros((4, 3), dtype=np.float32))


@pytest.mark.asyncio
async def test_recorder_emits_single_wave_file(fake_sd) -> None:
    recorder = SoundDeviceRecorder(fake_sd, MediaTrack("audio", "2"), sample_rate=8_000)
    chunks = []

    recorder.start(chunks.append)
    assert recorder.state == "recording"
    stream = FakeInputStream.instances[0]
    assert stream.kwargs["device"] == 2
    assert stream.started

    recorder._callback(np.full((160, 1), 0.25, dtype=np.float32), 160, None, None)
    recorder._callback(np.full((160, 1), -0.25, dtype=np.float32), 160, None, None)
    await recorder.stop()

    assert recorder.state == "inactive"
    assert stream.stopped and stream.closed
    assert len(chunks) == 1
    assert chunks[0].startswith(b"RIFF")
    with wave.open(io.BytesIO(chunks[0]), "rb") as handle:
        assert handle.getnframes() == 320


@pytest.mark.asyncio
async def test_recorder_without_audio_emits_nothing(fake_sd) -> None:
    recorder = SoundDeviceRecorder(fake_sd, MediaTrack("audio", "default"))
    chunks = []

    recorder.start(chunks.append)
    await recorder.stop()

    assert chunks == []
    with pytest.raises(RecorderInactiveError):
        await recorder.stop()


def test_recorder_close_aborts_stream(fake_sd) -> None:
    recorder = SoundDeviceRecorder(fake_sd, MediaTrack("audio", "default"))
    recorder.start(lambda chunk: None)

    recorder.close()
    recorder.close()

    assert FakeInputStream.instances[0].aborted
    assert recorder.state == "inactive"


def test_recorder_reports_device_errors(fake_sd, monkeypatch) -> None:
    def _boom(**kwargs):
        raise FakePortAudioError("device unavailable")

    monkeypatch.setattr(fake_sd, "InputStream", _boom)
    recorder = SoundDeviceRecorder(fake_sd, MediaTrack("audio", "USB Mic"))

    with pytest.raises(CaptureError):
        recorder.start(lambda chunk: None)


def test_backend_only_records_one_audio_track(fake_sd) -> None:
    backend = SoundDeviceMediaBackend()

    assert isinstance(backend.create_recorder([MediaTrack("audio", "default")], "audio/wav"), SoundDeviceRecorder)
    with pytest.raises(CaptureError):
        backend.create_recorder([MediaTrack("video", "0"), MediaTrack("audio", "default")])
    with pytest.raises(CaptureError):
        backend.create_recorder([MediaTrack("audio", "default")], "audio/webm;codecs=opus")


@pytest.mark.asyncio
async def test_recorder_stop_failure_is_a_capture_error(fake_sd, monkeypatch) -> None:
    recorder = SoundDeviceRecorder(fake_sd, MediaTrack("audio", "default"))
    recorder.start(lambda chunk: None)
    stream = FakeInputStream.instances[0]

    def _lost() -> None:
        raise FakePortAudioError("device lost")

    monkeypatch.setattr(stream, "stop", _lost)

    with pytest.raises(CaptureError):
        await recorder.stop()

    assert stream.aborted and stream.closed
    assert recorder.state == "inactive"
