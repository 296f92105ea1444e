"""Shared model contexts with bounded per-request session checkout."""

from __future__ import annotations

import contextlib
import logging
import threading
from pathlib import Path
from typing import Dict, Iterator, List

from ..errors import SessionError, TranscriptionError
from .base import Context, InferenceEngine, Session

logger = logging.getLogger(__name__)


class ContextPool:
    """Loads each model once and hands out one fresh session per request."""

    def __init__(self, *, engine: InferenceEngine, max_sessions: int = 2) -> None:
        self._engine = engine
        self._max_sessions = max(1, max_sessions)
        self._contexts: Dict[Path, Context] = {}
        self._contexts_lock = threading.Lock()
        self._load_locks: Dict[Path, threading.Lock] = {}
        self._slots = threading.BoundedSemaphore(self._max_sessions)

    @property
    def engine(self) -> InferenceEngine:
        return self._engine

    @property
    def max_sessions(self) -> int:
        return self._max_sessions

    def context(self, model_path: Path) -> Context:
        key = Path(model_path).resolve()
        with self._contexts_lock:
            ctx = self._contexts.get(key)
            if ctx is not None:
                return ctx
            load_lock = self._load_locks.setdefault(key, threading.Lock())

        # Loads run outside the registry lock; only loads of the same path wait on each other.
        with load_lock:
            with self._contexts_lock:
                ctx = self._contexts.get(key)
            if ctx is None:
                # A failed load raises here and leaves nothing cached.
                ctx = self._engine.load(key)
                with self._contexts_lock:
                    self._contexts[key] = ctx
                logger.info("engine.context.loaded", extra={"engine": self._engine.name, "model_path": str(key)})
        return ctx

    @contextlib.contextmanager
    def session(self, model_path: Path) -> Iterator[Session]:
        with self._slots:
            ctx = self.context(model_path)
            try:
                session = ctx.create_session()
            except TranscriptionError:
                raise
            except Exception as exc:
                raise SessionError(f"failed to create state: {exc}") from exc
            try:
                yield session
            finally:
                session.close()

    def loaded_models(self) -> List[str]:
        with self._contexts_lock:
            return sorted(str(path) for path in self._contexts)

    def clear(self) -> None:
        with self._contexts_lock:
            contexts = list(self._contexts.values())
            self._contexts.clear()
        for ctx in contexts:
            ctx.release()


__all__ = ["ContextPool"]
