from __future__ import annotations

import logging
import time
from typing import Optional

from ..errors import ConversionFailed
from .transcoder import FfmpegTranscoder, Transcoder

logger = logging.getLogger(__name__)


class AudioNormalizer:
    """Produces canonical mono 16 kHz WAV bytes from an arbitrary audio blob."""

    def __init__(self, *, transcoder: Optional[Transcoder] = None) -> None:
        self._transcoder = transcoder or FfmpegTranscoder()

    @property
    def transcoder(self) -> Transcoder:
        return self._transcoder

    def normalize(self, blob: bytes) -> bytes:
        if not blob:
            raise ConversionFailed("audio payload is empty")

        started = time.perf_counter()
        canonical = self._transcoder.transcode(blob)
        logger.info(
            "transcribe.normalize.done",
            extra={
                "transcoder": self._transcoder.name,
                "input_bytes": len(blob),
                "output_bytes": len(canonical),
                "elapsed_ms": round((time.perf_counter() - started) * 1000.0, 1),
            },
        )
        return canonical
