from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(slots=True, frozen=True)
class Segment:
    start: int
    end: int
    text: str


@dataclass(slots=True)
class TranscriptionResult:
    segments: List[Segment] = field(default_factory=list)
    reported_segments: int = 0
    model: str | None = None
    duration_seconds: float | None = None

    @property
    def dropped_segments(self) -> int:
        return self.reported_segments - len(self.segments)

    def __len__(self) -> int:
        return len(self.segments)
