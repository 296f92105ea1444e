"""Typed failures raised by the transcription pipeline."""

from __future__ import annotations

from typing import Iterable, Optional


class TranscriptionError(RuntimeError):
    """Base class for every failure that aborts a transcription request."""


class AudioIoError(TranscriptionError):
    """Raised when temporary storage cannot be created, written or read."""


class ConversionFailed(TranscriptionError):
    """Raised when the external transcoder cannot start or exits non-zero."""

    def __init__(self, message: str, *, returncode: Optional[int] = None, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class UnsupportedAudioFormat(TranscriptionError, ValueError):
    """Raised when canonical audio does not match the format the engine needs."""

    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "unsupported audio format")


class InvalidModelName(TranscriptionError, ValueError):
    """Raised when a model name is not one of the known model sizes."""


class ModelNotFound(TranscriptionError, ValueError):
    """Raised when the weight file for a model is missing on disk."""


class ModelLoadError(TranscriptionError):
    """Raised when the engine cannot load a model file."""


class SessionError(TranscriptionError):
    """Raised when the engine cannot create decoding state."""


class InferenceError(TranscriptionError):
    """Raised when a decoding run fails."""


class SegmentAccessError(TranscriptionError):
    """Raised by a per-index segment accessor."""


__all__ = [
    "TranscriptionError",
    "AudioIoError",
    "ConversionFailed",
    "UnsupportedAudioFormat",
    "InvalidModelName",
    "ModelNotFound",
    "ModelLoadError",
    "SessionError",
    "InferenceError",
    "SegmentAccessError",
]
