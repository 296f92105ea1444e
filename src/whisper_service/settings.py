"""Runtime configuration helpers for whisper-service."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .models import DEFAULT_MODELS_DIR

_BOOL_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _BOOL_TRUTHY


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _env_str(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class EngineSettings:
    backend: str
    models_dir: str
    model_template: str | None
    decoding_strategy: str
    beam_size: int
    language: str | None
    threads: int
    device: str
    compute_type: str
    max_sessions: int


@dataclass(frozen=True)
class AudioSettings:
    ffmpeg_binary: str
    ffmpeg_timeout: float
    max_bytes: int


@dataclass(frozen=True)
class ServerSettings:
    host: str
    port: int
    log_level: str
    log_format: str | None
    access_log: bool


@dataclass(frozen=True)
class Settings:
    engine: EngineSettings
    audio: AudioSettings
    server: ServerSettings


def load_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""

    engine_settings = EngineSettings(
        backend=os.getenv("WHISPER_ENGINE", "whispercpp"),
        models_dir=os.getenv("WHISPER_MODELS_DIR", DEFAULT_MODELS_DIR),
        model_template=_env_str("WHISPER_MODEL_TEMPLATE"),
        decoding_strategy=os.getenv("WHISPER_DECODING_STRATEGY", "greedy"),
        beam_size=_env_int("WHISPER_BEAM_SIZE", 5),
        language=_env_str("WHISPER_LANGUAGE"),
        threads=_env_int("WHISPER_THREADS", 0),
        device=os.getenv("WHISPER_DEVICE", "auto"),
        compute_type=os.getenv("WHISPER_COMPUTE_TYPE", "int8"),
        max_sessions=_env_int("WHISPER_MAX_SESSIONS", 2),
    )

    audio_settings = AudioSettings(
        ffmpeg_binary=os.getenv("WHISPER_FFMPEG_BINARY", "ffmpeg"),
        ffmpeg_timeout=_env_float("WHISPER_FFMPEG_TIMEOUT", 0.0),
        max_bytes=_env_int("WHISPER_MAX_BYTES", 0),
    )

    server_settings = ServerSettings(
        host=os.getenv("HOST", "0.0.0.0"),
        port=_env_int("PORT", 8000),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=_env_str("LOG_FORMAT"),
        access_log=_env_bool("ACCESS_LOG", True),
    )

    return Settings(engine=engine_settings, audio=audio_settings, server=server_settings)


__all__ = [
    "Settings",
    "EngineSettings",
    "AudioSettings",
    "ServerSettings",
    "load_settings",
]
