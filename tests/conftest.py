"""
pytest configuration: WAV builders, model fixtures and a mock-backed service.
"""

import io
import os
from pathlib import Path
from typing import Callable, List

import numpy as np
import pytest
import soundfile as sf

# The HTTP app builds its service at import time; keep it off real engines.
os.environ.setdefault("WHISPER_ENGINE", "mock")

from whisper_service.audio import AudioNormalizer, SampleDecoder, Transcoder
from whisper_service.engine import ContextPool, MockEngine
from whisper_service.engine.whispercpp import GGML_MAGIC
from whisper_service.service import TranscriptionService


def build_wav(samples: np.ndarray, *, sample_rate: int = 16000, subtype: str = "PCM_16") -> bytes:
    buffer = io.BytesIO()
    sf.write(buffer, samples, sample_rate, format="WAV", subtype=subtype)
    return buffer.getvalue()


class PassthroughTranscoder(Transcoder):
    """Returns its input unchanged and records every call."""

    name = "passthrough"

    def __init__(self) -> None:
        self.calls: List[bytes] = []

    def transcode(self, data: bytes) -> bytes:
        self.calls.append(data)
        return data


@pytest.fixture
def make_wav() -> Callable[..., bytes]:
    return build_wav


@pytest.fixture
def silent_wav() -> bytes:
    return build_wav(np.zeros(16000, dtype=np.int16))


@pytest.fixture
def models_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "models"
    directory.mkdir()
    (directory / "ggml-base.bin").write_bytes(GGML_MAGIC + b"\x00" * 64)
    return directory


@pytest.fixture
def passthrough() -> PassthroughTranscoder:
    return PassthroughTranscoder()


@pytest.fixture
def mock_engine() -> MockEngine:
    return MockEngine(segments=[(0, 150, " hello"), (150, 320, " world")])


@pytest.fixture
def mock_service(mock_engine, passthrough, models_dir) -> TranscriptionService:
    return TranscriptionService(
        pool=ContextPool(engine=mock_engine, max_sessions=2),
        normalizer=AudioNormalizer(transcoder=passthrough),
        decoder=SampleDecoder(),
        models_dir=models_dir,
    )
