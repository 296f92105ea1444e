from __future__ import annotations

import abc
import enum
from pathlib import Path
from typing import Any, List, Optional

import numpy as np

from ..errors import SegmentAccessError


class DecodingStrategy(str, enum.Enum):
    GREEDY = "greedy"
    BEAM_SEARCH = "beam_search"

    @classmethod
    def parse(cls, value: Optional[str]) -> "DecodingStrategy":
        normalized = (value or cls.GREEDY.value).strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"unsupported decoding strategy: {value}") from None


class Session(abc.ABC):
    """Mutable decoding state owned by a single request."""

    _closed = False

    @abc.abstractmethod
    def run(self, samples: np.ndarray) -> int:
        """Decode the full buffer and return the number of segments."""
        raise NotImplementedError

    @abc.abstractmethod
    def segment_text(self, index: int) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    def segment_start(self, index: int) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    def segment_end(self, index: int) -> int:
        raise NotImplementedError

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class MaterializedSession(Session):
    """Session whose run collects every engine segment into a list."""

    def __init__(self) -> None:
        self._segments: List[Any] = []

    def _segment(self, index: int) -> Any:
        if self._closed:
            raise SegmentAccessError("session is closed")
        if index < 0 or index >= len(self._segments):
            raise SegmentAccessError(f"segment index {index} out of range")
        return self._segments[index]

    def close(self) -> None:
        self._segments = []
        super().close()


class Context(abc.ABC):
    """Loaded model weights; read-only once constructed."""

    def __init__(self, *, model_path: Path) -> None:
        self.model_path = model_path

    @abc.abstractmethod
    def create_session(self) -> Session:
        raise NotImplementedError

    def release(self) -> None:
        """Free engine resources held by the context."""
        return None


class InferenceEngine(abc.ABC):
    """Interface for speech recognition backends."""

    name: str
    model_template: str = "ggml-{name}.bin"

    @abc.abstractmethod
    def load(self, model_path: Path) -> Context:
        """Load weights from ``model_path`` into a new context."""
        raise NotImplementedError
