from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from ..errors import InferenceError, ModelLoadError, SegmentAccessError, SessionError
from .base import Context, InferenceEngine, Session


@dataclass(slots=True)
class MockSegment:
    start: int
    end: int
    text: str


@dataclass
class MockScript:
    """Scripted behaviour for the mock engine.

    ``accessor_errors`` maps ``(index, field)`` to an error message, where
    ``field`` is one of ``"text"``, ``"start"`` or ``"end"``.
    """

    segments: List[MockSegment] = field(default_factory=list)
    fail_load: Optional[str] = None
    fail_session: Optional[str] = None
    fail_run: Optional[str] = None
    reported_count: Optional[int] = None
    accessor_errors: Dict[Tuple[int, str], str] = field(default_factory=dict)


class MockSession(Session):
    def __init__(self, context: "MockContext") -> None:
        self._context = context
        self._count = 0
        self.samples: Optional[np.ndarray] = None

    def run(self, samples: np.ndarray) -> int:
        script = self._context.script
        if script.fail_run:
            raise InferenceError(f"failed to run model: {script.fail_run}")
        self.samples = samples
        self._context.last_samples = samples
        self._context.runs += 1
        if script.reported_count is not None:
            self._count = script.reported_count
        else:
            self._count = len(script.segments)
        return self._count

    def segment_text(self, index: int) -> str:
        return self._lookup(index, "text").text

    def segment_start(self, index: int) -> int:
        return self._lookup(index, "start").start

    def segment_end(self, index: int) -> int:
        return self._lookup(index, "end").end

    def _lookup(self, index: int, accessor: str) -> MockSegment:
        script = self._context.script
        message = script.accessor_errors.get((index, accessor))
        if message:
            raise SegmentAccessError(message)
        if index < 0 or index >= self._count or index >= len(script.segments):
            raise SegmentAccessError(f"segment index {index} out of range")
        return script.segments[index]

    def close(self) -> None:
        if not self._closed:
            self._context.open_sessions -= 1
        super().close()


class MockContext(Context):
    def __init__(self, *, model_path: Path, script: MockScript) -> None:
        super().__init__(model_path=model_path)
        self.script = script
        self.runs = 0
        self.last_samples: Optional[np.ndarray] = None
        self.open_sessions = 0
        self.released = False

    def create_session(self) -> MockSession:
        if self.script.fail_session:
            raise SessionError(f"failed to create state: {self.script.fail_session}")
        self.open_sessions += 1
        return MockSession(self)

    def release(self) -> None:
        self.released = True


class MockEngine(InferenceEngine):
    """Deterministic engine that replays a script; used in tests and local runs."""

    name = "mock"

    def __init__(self, *, segments: Iterable[Tuple[int, int, str]] = (), script: Optional[MockScript] = None) -> None:
        self.script = script or MockScript(segments=[MockSegment(*item) for item in segments])
        self.loads: List[Path] = []
        self.contexts: List[MockContext] = []

    def load(self, model_path: Path) -> MockContext:
        path = Path(model_path)
        if self.script.fail_load:
            raise ModelLoadError(f"failed to load model: {self.script.fail_load}")
        if not path.exists():
            raise ModelLoadError(f"failed to load model: {path} does not exist")
        self.loads.append(path)
        context = MockContext(model_path=path, script=self.script)
        self.contexts.append(context)
        return context


__all__ = ["MockEngine", "MockScript", "MockSegment", "MockContext", "MockSession"]
