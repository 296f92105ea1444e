"""Speech recognition engines and the shared context pool."""

from .base import Context, DecodingStrategy, InferenceEngine, MaterializedSession, Session
from .factory import build_engine
from .mock import MockEngine, MockScript, MockSegment
from .pool import ContextPool

__all__ = [
    "Context",
    "ContextPool",
    "DecodingStrategy",
    "InferenceEngine",
    "MaterializedSession",
    "MockEngine",
    "MockScript",
    "MockSegment",
    "Session",
    "build_engine",
]
