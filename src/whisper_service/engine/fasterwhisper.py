from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import numpy as np

from ..errors import InferenceError, ModelLoadError, SegmentAccessError, SessionError
from .base import Context, DecodingStrategy, InferenceEngine, MaterializedSession

try:  # pragma: no cover - optional dependency
    from faster_whisper import WhisperModel
except Exception:  # pragma: no cover - guard for environments without faster-whisper
    WhisperModel = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

# Segment timestamps are reported in whisper.cpp units (10 ms).
TICKS_PER_SECOND = 100


class FasterWhisperSession(MaterializedSession):
    def __init__(self, context: "FasterWhisperContext") -> None:
        super().__init__()
        self._context = context

    def run(self, samples: np.ndarray) -> int:
        audio = np.ascontiguousarray(samples, dtype=np.float32)
        try:
            segments, _info = self._context.model.transcribe(
                audio,
                language=self._context.language,
                beam_size=self._context.beam_size,
                temperature=0.0,
                task="transcribe",
            )
            # `segments` is a generator; decoding happens while it is consumed.
            self._segments = list(segments)
        except Exception as exc:
            raise InferenceError(f"failed to run model: {exc}") from exc
        return len(self._segments)

    def segment_text(self, index: int) -> str:
        segment = self._segment(index)
        try:
            return str(segment.text or "")
        except Exception as exc:
            raise SegmentAccessError(str(exc)) from exc

    def segment_start(self, index: int) -> int:
        return self._timestamp(index, "start")

    def segment_end(self, index: int) -> int:
        return self._timestamp(index, "end")

    def _timestamp(self, index: int, field: str) -> int:
        segment = self._segment(index)
        try:
            seconds = float(getattr(segment, field))
        except Exception as exc:
            raise SegmentAccessError(f"{field}: {exc}") from exc
        return int(round(seconds * TICKS_PER_SECOND))


class FasterWhisperContext(Context):
    def __init__(self, *, model_path: Path, model: Any, beam_size: int, language: Optional[str]) -> None:
        super().__init__(model_path=model_path)
        self.model = model
        self.beam_size = beam_size
        self.language = language

    def create_session(self) -> FasterWhisperSession:
        if self.model is None:
            raise SessionError("failed to create state: context has been released")
        return FasterWhisperSession(self)

    def release(self) -> None:
        self.model = None


class FasterWhisperEngine(InferenceEngine):
    """Engine backed by faster-whisper; loads CTranslate2 model directories."""

    name = "faster-whisper"
    model_template = "faster-whisper-{name}"

    def __init__(
        self,
        *,
        strategy: DecodingStrategy = DecodingStrategy.GREEDY,
        beam_size: int = 5,
        language: Optional[str] = None,
        device: str = "auto",
        compute_type: str = "int8",
        threads: int = 0,
    ) -> None:
        if WhisperModel is None:
            raise RuntimeError("faster-whisper must be installed to use FasterWhisperEngine")
        self._strategy = strategy
        self._beam_size = max(1, beam_size) if strategy is DecodingStrategy.BEAM_SEARCH else 1
        self._language = language
        self._device = device
        self._compute_type = compute_type
        self._threads = max(0, threads)

    def load(self, model_path: Path) -> FasterWhisperContext:
        path = Path(model_path)
        if not path.exists():
            raise ModelLoadError(f"failed to load model: {path} does not exist")
        try:
            model = WhisperModel(
                str(path),
                device=self._device,
                compute_type=self._compute_type,
                cpu_threads=self._threads,
            )
        except Exception as exc:
            raise ModelLoadError(f"failed to load model: {exc}") from exc

        logger.info(
            "engine.faster_whisper.loaded",
            extra={"model_path": str(path), "device": self._device, "beam_size": self._beam_size},
        )
        return FasterWhisperContext(
            model_path=path,
            model=model,
            beam_size=self._beam_size,
            language=self._language,
        )


__all__ = ["FasterWhisperEngine", "FasterWhisperContext", "FasterWhisperSession", "TICKS_PER_SECOND"]
