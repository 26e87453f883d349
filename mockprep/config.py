"""Global configuration using Pydantic settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application wide settings loaded from environment variables."""

    database_path: Path = Field(default_factory=lambda: Path("mockprep.db"))
    api_base_url: str = "http://127.0.0.1:8000"
    transcribe_path: str = "/api/transcribe"
    tts_path: str = "/api/tts"
    transcription_timeout: float = 60.0
    tts_timeout: float = 30.0
    language: str = "en"
    voice_gender: str = "female"
    capture_backend: str = "ffmpeg"
    ffmpeg_binary: str = "ffmpeg"
    video_device: Optional[str] = None
    audio_device: Optional[str] = None
    stop_timeout_seconds: float = 5.0
    max_video_bytes: int = 50 * 1024 * 1024
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    storage_bucket: str = "interview-videos"
    openai_api_key: Optional[str] = None
    openai_transcription_model: str = "whisper-1"
    openai_tts_model: str = "tts-1"
    openai_feedback_model: str = "gpt-4o-mini"
    transcription_backend: str = "openai"
    speech_backend: str = "openai"
    feedback_backend: str = "openai"
    user_email: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="MOCKPREP_",
        env_file=".env",
        case_sensitive=False,
    )

    @property
    def transcribe_url(self) -> str:
        return self.api_base_url.rstrip("/") + self.transcribe_path

    @property
    def tts_url(self) -> str:
        return self.api_base_url.rstrip("/") + self.tts_path


_settings: Optional[Settings] = None


_MODEL_CONFIG: Dict[str, Any] = dict(Settings.model_config or {})
_ENV_PREFIX: str = (_MODEL_CONFIG.get("env_prefix") or "").upper()
_CASE_SENSITIVE: bool = bool(_MODEL_CONFIG.get("case_sensitive", True))
_ENV_FILE = _MODEL_CONFIG.get("env_file") or ".env"
_ENV_PATH = Path(_ENV_FILE)


@dataclass
class EnvironmentSetting:
    """Metadata about a configuration option backed by an environment variable."""

    field: str
    env_name: str
    value: Any
    default: Any
    annotation: Any


class EnvironmentSettingError(RuntimeError):
    """Raised when environment-backed configuration updates fail."""


def _env_key(field: str) -> str:
    key = f"{_ENV_PREFIX}{field}" if _ENV_PREFIX else field
    return key if _CASE_SENSITIVE else key.upper()


def _field_default(field_info) -> Any:
    if field_info.default is not None:
        return field_info.default
    if field_info.default_factory is not None:  # type: ignore[truthy-function]
        return field_info.default_factory()
    return None


def _load_env_file() -> Iterable[str]:
    if not _ENV_PATH.exists():
        return []
    return _ENV_PATH.read_text().splitlines()


def _persist_env_value(env_name: str, value: Optional[str]) -> None:
    new_lines = []
    updated = False
    for line in _load_env_file():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in line:
            new_lines.append(line)
            continue
        key = line.split("=", 1)[0].strip()
        if key != env_name:
            new_lines.append(line)
            continue
        updated = True
        if value is not None:
            new_lines.append(f"{env_name}={value}")
    if not updated and value is not None:
        new_lines.append(f"{env_name}={value}")

    if new_lines:
        _ENV_PATH.write_text("\n".join(new_lines) + "\n")
    elif _ENV_PATH.exists():
        _ENV_PATH.unlink()


def list_environment_settings(settings: Optional[Settings] = None) -> Iterable[EnvironmentSetting]:
    """Return metadata for all environment-backed settings."""

    settings = settings or get_settings()
    for name, field in Settings.model_fields.items():
        yield EnvironmentSetting(
            field=name,
            env_name=_env_key(name),
            value=getattr(settings, name),
            default=_field_default(field),
            annotation=field.annotation,
        )


def _apply_setting_update(field: str, raw_value: Optional[str]) -> Settings:
    if field not in Settings.model_fields:
        raise EnvironmentSettingError(f"Unknown setting: {field}")

    env_name = _env_key(field)
    previous = os.environ.get(env_name)
    previous_file = _ENV_PATH.read_text() if _ENV_PATH.exists() else None

    if raw_value is None:
        os.environ.pop(env_name, None)
    else:
        os.environ[env_name] = raw_value

    # Settings() reads the env file too, so it must already reflect the change.
    _persist_env_value(env_name, raw_value)
    try:
        new_settings = Settings(_env_file=_ENV_PATH)
    except ValidationError as exc:
        if previous is None:
            os.environ.pop(env_name, None)
        else:
            os.environ[env_name] = previous
        if previous_file is None:
            _ENV_PATH.unlink(missing_ok=True)
        else:
            _ENV_PATH.write_text(previous_file)
        raise EnvironmentSettingError(str(exc)) from exc

    global _settings
    _settings = new_settings
    return new_settings


def update_environment_setting(field: str, raw_value: str) -> Settings:
    """Update an environment setting and reload configuration."""

    return _apply_setting_update(field, raw_value)


def clear_environment_setting(field: str) -> Settings:
    """Remove an environment override for the given field and reload configuration."""

    return _apply_setting_update(field, None)


def get_settings() -> Settings:
    """Return a singleton instance of the application settings."""

    global _settings
    if _settings is None:
        _settings = Settings(_env_file=_ENV_PATH)
    return _settings


__all__ = [
    "Settings",
    "EnvironmentSetting",
    "EnvironmentSettingError",
    "clear_environment_setting",
    "get_settings",
    "list_environment_settings",
    "update_environment_setting",
]
