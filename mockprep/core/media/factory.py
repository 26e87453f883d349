"""Factory helpers for constructing media backends and tracks."""

from __future__ import annotations

from typing import Optional, Tuple

from ...config import Settings, get_settings
from ...logging import get_logger
from .base import CaptureError, MediaBackend, MediaTrack

LOGGER = get_logger(__name__)

DISABLE_DEVICE_KEYWORDS = {"skip", "none", "off", "disabled"}


class CaptureConfigurationError(RuntimeError):
    """Raised when a media backend cannot be configured."""


def _is_disabled_device(value: Optional[str]) -> bool:
    if value is None:
        return True
    stripped = value.strip().lower()
    return not stripped or stripped in DISABLE_DEVICE_KEYWORDS


def create_media_backend(name: Optional[str] = None, settings: Optional[Settings] = None) -> Optional[MediaBackend]:
    """Create the :class:`MediaBackend` named by ``name`` or the settings."""

    settings = settings or get_settings()
    backend = (name or settings.capture_backend or "").strip().lower()

    if backend in {"", "none", "off"}:
        return None

    if backend == "ffmpeg":
        from .ffmpeg_backend import FFmpegMediaBackend, _resolve_binary

        if _resolve_binary(settings.ffmpeg_binary) is None:
            LOGGER.info(
                "FFmpeg binary '%s' is unavailable; falling back to sounddevice for audio capture",
                settings.ffmpeg_binary,
            )
            try:
                return create_media_backend("sounddevice", settings)
            except CaptureConfigurationError as exc:
                raise CaptureConfigurationError(
                    f"FFmpeg binary '{settings.ffmpeg_binary}' was not found and the "
                    f"sounddevice fallback failed: {exc}"
                ) from exc
        return FFmpegMediaBackend(binary=settings.ffmpeg_binary)

    if backend == "sounddevice":
        try:
            from .sounddevice_backend import SoundDeviceMediaBackend

            return SoundDeviceMediaBackend()
        except (ImportError, CaptureError) as exc:
            raise CaptureConfigurationError(str(exc)) from exc

    raise CaptureConfigurationError(f"Unknown capture backend: {backend}")


def resolve_tracks(settings: Optional[Settings] = None) -> Tuple[Optional[MediaTrack], Optional[MediaTrack]]:
    """Return the configured ``(video, audio)`` tracks; disabled devices are ``None``."""

    settings = settings or get_settings()
    video = None if _is_disabled_device(settings.video_device) else MediaTrack("video", settings.video_device.strip())
    audio = None if _is_disabled_device(settings.audio_device) else MediaTrack("audio", settings.audio_device.strip())
    return video, audio


__all__ = [
    "CaptureConfigurationError",
    "create_media_backend",
    "resolve_tracks",
]
