"""Local whisper transcription service."""

from .errors import TranscriptionError
from .models import ModelName
from .service import TranscriptionService
from .types import Segment, TranscriptionResult

__all__ = [
    "ModelName",
    "Segment",
    "TranscriptionError",
    "TranscriptionResult",
    "TranscriptionService",
]
