"""Camera and microphone recording through the FFmpeg command line tool."""

from __future__ import annotations

import asyncio
import contextlib
import functools
import io
import shlex
import shutil
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, FrozenSet, List, Optional, Sequence
from urllib.parse import parse_qsl, urlsplit

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

LOGGER = get_logger(__name__)

_MUXERS = {
    "video/webm": "webm",
    "audio/webm": "webm",
    "video/mp4": "mp4",
    "audio/mp4": "mp4",
    "audio/ogg": "ogg",
}

_CODEC_ENCODERS = {
    "vp9": "libvpx-vp9",
    "vp8": "libvpx",
    "avc1": "libx264",
    "h264": "libx264",
    "opus": "libopus",
    "vorbis": "libvorbis",
    "mp4a": "aac",
    "aac": "aac",
}

_VIDEO_CODECS = {"vp9", "vp8", "avc1", "h264"}

_DEFAULT_ENCODERS = {
    "webm": ("libvpx", "libopus"),
    "mp4": ("libx264", "aac"),
    "ogg": (None, "libopus"),
}


@dataclass
class FFmpegInputSpec:
    """Parsed representation of an FFmpeg capture input."""

    input_format: str
    input_target: str
    args_before_input: List[str] = field(default_factory=list)


@dataclass
class FFmpegEncoding:
    """Container and encoders resolved from a MIME type."""

    muxer: str
    video_encoder: Optional[str]
    audio_encoder: Optional[str]


def parse_ffmpeg_input(device: str) -> FFmpegInputSpec:
    """Parse ``format:target?options`` into an :class:`FFmpegInputSpec`.

    Examples: ``v4l2:/dev/video0?opt_video_size=640x480``,
    ``pulse:default``, ``dshow:audio=Microphone``.
    """

    if not device:
        raise CaptureError("FFmpeg backend requires a device specification")

    split = urlsplit(device)
    if not split.scheme:
        raise CaptureError(
            "FFmpeg device specification must start with an input format, "
            "for example 'v4l2:/dev/video0' or 'pulse:default'",
        )

    target = (split.netloc + split.path).strip()
    if not target:
        raise CaptureError("FFmpeg device specification must include a device identifier")

    args: List[str] = []
    for key, value in parse_qsl(split.query, keep_blank_values=True):
        if key == "args" and value:
            args.extend(shlex.split(value))
        elif key.startswith("opt_"):
            option = "-" + key[4:]
            args.extend([option, value] if value else [option])
        elif not key:
            continue
        else:
            raise CaptureError(f"Unknown FFmpeg device option: {key}")

    return FFmpegInputSpec(input_format=split.scheme, input_target=target, args_before_input=args)


def resolve_encoding(mime_type: str) -> Optional[FFmpegEncoding]:
    """Map a recorder MIME type onto an FFmpeg muxer and encoders."""

    parts = [part.strip() for part in (mime_type or "").split(";")]
    base = parts[0].lower()
    muxer = _MUXERS.get(base)
    if muxer is None:
        return None

    video_encoder, audio_encoder = _DEFAULT_ENCODERS[muxer]
    codecs: List[str] = []
    for param in parts[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "codecs":
            codecs = [c.strip().strip('"').lower() for c in value.split(",") if c.strip()]

    for codec in codecs:
        encoder = _CODEC_ENCODERS.get(codec.split(".", 1)[0])
        if encoder is None:
            return None
        if codec.split(".", 1)[0] in _VIDEO_CODECS:
            video_encoder = encoder
        else:
            audio_encoder = encoder

    if base.startswith("audio/"):
        video_encoder = None
    return FFmpegEncoding(muxer=muxer, video_encoder=video_encoder, audio_encoder=audio_encoder)


class FFmpegBinaryNotFoundError(CaptureError):
    """Raised when the FFmpeg executable cannot be located."""

    def __init__(self, binary: str) -> None:
        message = (
            f"FFmpeg binary '{binary}' was not found. Install FFmpeg and ensure it is on PATH "
            "or configure MOCKPREP_FFMPEG_BINARY."
        )
        super().__init__(message)
        self.binary = binary


def _resolve_binary(binary: str) -> Optional[str]:
    """Return the absolute path to the requested FFmpeg binary if available."""

    if not binary:
        binary = "ffmpeg"

    found = shutil.which(binary)
    if found:
        return found

    candidate = Path(binary)
    if candidate.exists():
        return str(candidate)

    return None


@functools.lru_cache(maxsize=8)
def _available_encoders(executable: str) -> FrozenSet[str]:
    try:
        result = subprocess.run(  # noqa: S603 - probing the configured ffmpeg
            [executable, "-hide_banner", "-encoders"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        LOGGER.warning("Failed to list FFmpeg encoders: %s", exc)
        return frozenset()

    names = set()
    listing = False
    for line in result.stdout.splitlines():
        stripped = line.strip()
        if stripped.startswith("------"):
            listing = True
            continue
        if not listing or not stripped:
            continue
        fields = stripped.split()
        if len(fields) >= 2:
            names.add(fields[1])
    return frozenset(names)


class FFmpegRecorder(MediaRecorder):
    """Recorder that streams an encoded container from an FFmpeg subprocess."""

    def __init__(
        self,
        tracks: Sequence[MediaTrack],
        *,
        executable: str,
        mime_type: str,
        encoding: FFmpegEncoding,
        chunk_size: int = 64 * 1024,
    ) -> None:
        self.tracks = list(tracks)
        self.mime_type = mime_type
        self._executable = executable
        self._encoding = encoding
        self._chunk_size = chunk_size
        self._process: Optional[subprocess.Popen] = None
        self._reader_thread: Optional[threading.Thread] = None
        self._stderr_thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._on_data: Optional[Callable[[bytes], None]] = None

    @property
    def state(self) -> str:
        return RECORDER_RECORDING if self._process is not None else RECORDER_INACTIVE

    def start(self, on_data: Callable[[bytes], None]) -> None:
        if self._process is not None:
            return

        self._loop = asyncio.get_running_loop()
        command = self.build_command()
        LOGGER.info("Starting FFmpeg recording as %s", self.mime_type)
        LOGGER.debug("FFmpeg command: %s", shlex.join(command))

        try:
            process = subprocess.Popen(  # noqa: S603 - required to spawn ffmpeg
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                bufsize=0,
            )
        except OSError as exc:
            raise CaptureError(f"Failed to launch FFmpeg binary '{self._executable}'") from exc

        self._on_data = on_data
        self._process = process
        self._reader_thread = threading.Thread(target=self._reader_loop, args=(process.stdout,), daemon=True)
        self._reader_thread.start()
        self._stderr_thread = threading.Thread(target=self._stderr_loop, args=(process.stderr,), daemon=True)
        self._stderr_thread.start()

    async def stop(self) -> None:
        process = self._process
        if process is None:
            raise RecorderInactiveError("Recorder not active")

        LOGGER.info("Finalizing FFmpeg recording")
        # "q" on stdin makes ffmpeg write the container trailer before exiting.
        with contextlib.suppress(Exception):
            process.stdin.write(b"q")
            process.stdin.close()

        returncode = await asyncio.to_thread(self._wait_for_exit, process)
        if returncode not in (0, 255):
            LOGGER.warning("FFmpeg exited with code %s while recording", returncode)
        self._process = None
        self._on_data = None

    def close(self) -> None:
        process, self._process = self._process, None
        self._on_data = None
        if process is None:
            return
        with contextlib.suppress(Exception):
            process.kill()
        for pipe in (process.stdin, process.stdout, process.stderr):
            with contextlib.suppress(Exception):
                pipe and pipe.close()
        for thread in (self._reader_thread, self._stderr_thread):
            if thread is not None:
                thread.join(timeout=1)
        self._reader_thread = None
        self._stderr_thread = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def build_command(self) -> List[str]:
        command: List[str] = [
            self._executable,
            "-hide_banner",
            "-loglevel",
            "warning",
            "-nostats",
        ]
        maps: List[str] = []
        has_video = False
        for index, track in enumerate(self.tracks):
            spec = parse_ffmpeg_input(track.device)
            command.extend(spec.args_before_input)
            command.extend(["-f", spec.input_format, "-i", spec.input_target])
            if track.kind == "video":
                has_video = True
                maps.extend(["-map", f"{index}:v"])
            else:
                maps.extend(["-map", f"{index}:a"])
        command.extend(maps)

        encoding = self._encoding
        if has_video and encoding.video_encoder:
            command.extend(["-c:v", encoding.video_encoder])
            if encoding.video_encoder.startswith("libvpx"):
                command.extend(["-deadline", "realtime"])
        else:
            command.append("-vn")
        if encoding.audio_encoder:
            command.extend(["-c:a", encoding.audio_encoder])
        if encoding.muxer == "mp4":
            # A pipe cannot be rewound to write the moov atom at the end.
            command.extend(["-movflags", "frag_keyframe+empty_moov"])
        command.extend(["-f", encoding.muxer, "pipe:1"])
        return command

    def _wait_for_exit(self, process: subprocess.Popen) -> int:
        returncode = process.wait()
        if self._reader_thread is not None:
            self._reader_thread.join()
        return returncode

    def _deliver(self, chunk: bytes) -> None:
        if self._on_data is not None:
            self._on_data(chunk)

    def _reader_loop(self, stdout: io.BufferedReader) -> None:  # pragma: no cover - exercised in integration
        loop = self._loop
        assert loop is not None
        while True:
            try:
                data = stdout.read(self._chunk_size)
            except (OSError, ValueError):
                break
            if not data:
                break
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(self._deliver, data)

    def _stderr_loop(self, pipe: io.BufferedReader) -> None:  # pragma: no cover - runtime logging
        try:
            for line in iter(pipe.readline, b""):
                text = line.decode(errors="ignore").strip()
                if text:
                    LOGGER.debug("ffmpeg: %s", text)
        except (OSError, ValueError):
            pass
        finally:
            with contextlib.suppress(Exception):
                pipe.close()


class FFmpegMediaBackend(MediaBackend):
    """Record camera and microphone inputs through FFmpeg."""

    name = "ffmpeg"

    def __init__(self, binary: str = "ffmpeg") -> None:
        self.binary = binary

    def _executable(self) -> Optional[str]:
        return _resolve_binary(self.binary)

    def is_type_supported(self, mime_type: str) -> bool:
        encoding = resolve_encoding(mime_type)
        if encoding is None:
            return False
        executable = self._executable()
        if executable is None:
            return False
        encoders = _available_encoders(executable)
        required = [name for name in (encoding.video_encoder, encoding.audio_encoder) if name]
        return all(name in encoders for name in required)

    def create_recorder(self, tracks: Sequence[MediaTrack], mime_type: str = "") -> MediaRecorder:
        if not tracks:
            raise CaptureError("At least one track is required")

        executable = self._executable()
        if executable is None:
            raise FFmpegBinaryNotFoundError(self.binary)

        audio_only = all(track.kind == "audio" for track in tracks)
        negotiated = mime_type or ("audio/webm" if audio_only else "video/webm")
        encoding = resolve_encoding(negotiated)
        if encoding is None:
            raise CaptureError(f"FFmpeg backend cannot encode {negotiated}")

        for track in tracks:
            parse_ffmpeg_input(track.device)

        return FFmpegRecorder(tracks, executable=executable, mime_type=negotiated, encoding=encoding)


__all__ = [
    "FFmpegBinaryNotFoundError",
    "FFmpegEncoding",
    "FFmpegInputSpec",
    "FFmpegMediaBackend",
    "FFmpegRecorder",
    "parse_ffmpeg_input",
    "resolve_encoding",
]
