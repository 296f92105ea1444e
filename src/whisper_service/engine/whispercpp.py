from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

from ..errors import InferenceError, ModelLoadError, SegmentAccessError, SessionError
from .base import Context, DecodingStrategy, InferenceEngine, MaterializedSession

try:  # pragma: no cover - optional dependency
    from pywhispercpp.model import Model as WhisperCppModel
except Exception:  # pragma: no cover - guard for environments without pywhispercpp
    WhisperCppModel = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

# whisper.cpp writes GGML_FILE_MAGIC (0x67676d6c) little-endian at offset 0.
GGML_MAGIC = b"lmgg"

# pywhispercpp defaults to greedy sampling (0).
_SAMPLING_BEAM_SEARCH = 1


class WhisperCppSession(MaterializedSession):
    def __init__(self, context: "WhisperCppContext") -> None:
        super().__init__()
        self._context = context

    def run(self, samples: np.ndarray) -> int:
        audio = np.ascontiguousarray(samples, dtype=np.float32)
        # One whisper.cpp context carries one decoding state.
        with self._context.lock:
            try:
                segments = self._context.model.transcribe(audio, **self._context.transcribe_params)
            except Exception as exc:
                raise InferenceError(f"failed to run model: {exc}") from exc
        self._segments = list(segments or [])
        return len(self._segments)

    def segment_text(self, index: int) -> str:
        segment = self._segment(index)
        try:
            text = segment.text
        except Exception as exc:
            raise SegmentAccessError(str(exc)) from exc
        if isinstance(text, bytes):
            return text.decode("utf-8", errors="replace")
        return str(text)

    def segment_start(self, index: int) -> int:
        return self._timestamp(index, "t0")

    def segment_end(self, index: int) -> int:
        return self._timestamp(index, "t1")

    def _timestamp(self, index: int, field: str) -> int:
        segment = self._segment(index)
        try:
            return int(getattr(segment, field))
        except Exception as exc:
            raise SegmentAccessError(f"{field}: {exc}") from exc


class WhisperCppContext(Context):
    def __init__(self, *, model_path: Path, model: Any, transcribe_params: Dict[str, Any]) -> None:
        super().__init__(model_path=model_path)
        self.model = model
        self.transcribe_params = dict(transcribe_params)
        self.lock = threading.Lock()

    def create_session(self) -> WhisperCppSession:
        if self.model is None:
            raise SessionError("failed to create state: context has been released")
        return WhisperCppSession(self)

    def release(self) -> None:
        self.model = None


class WhisperCppEngine(InferenceEngine):
    """Engine backed by whisper.cpp through pywhispercpp; loads ggml weight files."""

    name = "whispercpp"
    model_template = "ggml-{name}.bin"

    def __init__(
        self,
        *,
        strategy: DecodingStrategy = DecodingStrategy.GREEDY,
        language: Optional[str] = None,
        threads: int = 0,
    ) -> None:
        if WhisperCppModel is None:
            raise RuntimeError("pywhispercpp must be installed to use WhisperCppEngine")
        self._strategy = strategy
        self._language = language
        self._threads = max(0, threads)

    def load(self, model_path: Path) -> WhisperCppContext:
        path = Path(model_path)
        _check_ggml_file(path)

        model_kwargs: Dict[str, Any] = {}
        if self._strategy is DecodingStrategy.BEAM_SEARCH:
            model_kwargs["params_sampling_strategy"] = _SAMPLING_BEAM_SEARCH

        try:
            model = WhisperCppModel(str(path), **model_kwargs)
        except Exception as exc:
            raise ModelLoadError(f"failed to load model: {exc}") from exc

        logger.info("engine.whispercpp.loaded", extra={"model_path": str(path), "strategy": self._strategy.value})
        return WhisperCppContext(model_path=path, model=model, transcribe_params=self._transcribe_params())

    def _transcribe_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self._language:
            params["language"] = self._language
        if self._threads:
            params["n_threads"] = self._threads
        return params


def _check_ggml_file(path: Path) -> None:
    try:
        with path.open("rb") as fh:
            magic = fh.read(len(GGML_MAGIC))
    except OSError as exc:
        raise ModelLoadError(f"failed to load model: {exc}") from exc
    if magic != GGML_MAGIC:
        raise ModelLoadError(f"failed to load model: {path} is not a ggml model file")


__all__ = ["WhisperCppEngine", "WhisperCppContext", "WhisperCppSession", "GGML_MAGIC"]
