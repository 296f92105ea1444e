from __future__ import annotations

from typing import Optional

from .base import DecodingStrategy, InferenceEngine
from .mock import MockEngine


def build_engine(
    name: str,
    *,
    strategy: DecodingStrategy = DecodingStrategy.GREEDY,
    beam_size: int = 5,
    language: Optional[str] = None,
    threads: int = 0,
    device: str = "auto",
    compute_type: str = "int8",
) -> InferenceEngine:
    lname = (name or "").strip().lower()
    if lname in ("mock", "fake"):
        return MockEngine()
    if lname in ("whispercpp", "whisper.cpp", "whisper-cpp"):
        # Imported lazily so the other backends work without pywhispercpp.
        from .whispercpp import WhisperCppEngine

        return WhisperCppEngine(strategy=strategy, language=language, threads=threads)
    if lname in ("faster-whisper", "faster_whisper"):
        from .fasterwhisper import FasterWhisperEngine

        return FasterWhisperEngine(
            strategy=strategy,
            beam_size=beam_size,
            language=language,
            device=device,
            compute_type=compute_type,
            threads=threads,
        )
    raise ValueError(f"unsupported inference engine: {name}")
