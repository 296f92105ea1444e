from __future__ import annotations

from dataclasses import dataclass

CANONICAL_SAMPLE_RATE = 16000
CANONICAL_SUBTYPE = "PCM_16"
SUPPORTED_CHANNELS = (1, 2)


@dataclass(slots=True, frozen=True)
class AudioMetadata:
    """Header fields read from a canonical WAV payload."""

    sample_rate: int
    channels: int
    frames: int
    subtype: str

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return float(self.frames) / float(self.sample_rate)
