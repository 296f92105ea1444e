from __future__ import annotations

import io
from typing import List

import numpy as np
import soundfile as sf

from ..errors import UnsupportedAudioFormat
from .types import CANONICAL_SAMPLE_RATE, CANONICAL_SUBTYPE, SUPPORTED_CHANNELS, AudioMetadata

_INT16_SCALE = 32768.0


class SampleDecoder:
    """Parses canonical WAV bytes into normalized mono float32 samples."""

    def __init__(self, *, sample_rate: int = CANONICAL_SAMPLE_RATE) -> None:
        self._sample_rate = sample_rate

    def inspect(self, data: bytes) -> AudioMetadata:
        try:
            info = sf.info(io.BytesIO(data))
        except Exception as exc:
            raise UnsupportedAudioFormat([f"unreadable wav data: {exc}"]) from exc
        return AudioMetadata(
            sample_rate=int(info.samplerate),
            channels=int(info.channels),
            frames=int(info.frames),
            subtype=str(info.subtype),
        )

    def validate(self, metadata: AudioMetadata) -> None:
        # Every condition is checked so the error reports all of them.
        problems: List[str] = []
        if metadata.channels not in SUPPORTED_CHANNELS:
            problems.append(f">2 channels unsupported (got {metadata.channels})")
        if metadata.sample_rate != self._sample_rate:
            problems.append(f"sample rate must be {self._sample_rate}Hz (got {metadata.sample_rate})")
        if metadata.subtype != CANONICAL_SUBTYPE:
            problems.append(f"samples must be 16-bit PCM (got {metadata.subtype})")
        if problems:
            raise UnsupportedAudioFormat(problems)

    def decode(self, data: bytes) -> np.ndarray:
        metadata = self.inspect(data)
        self.validate(metadata)

        try:
            pcm, _ = sf.read(io.BytesIO(data), dtype="int16", always_2d=True)
        except Exception as exc:
            raise UnsupportedAudioFormat([f"unreadable wav data: {exc}"]) from exc

        samples = pcm.astype(np.float32) / _INT16_SCALE
        if metadata.channels == 2:
            samples = (samples[:, 0] + samples[:, 1]) / np.float32(2.0)
        else:
            samples = samples[:, 0]
        return np.ascontiguousarray(samples, dtype=np.float32)
