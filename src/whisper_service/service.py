from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional, Tuple

from .audio import AudioNormalizer, FfmpegTranscoder, SampleDecoder
from .audio.types import CANONICAL_SAMPLE_RATE
from .engine import ContextPool, DecodingStrategy, InferenceEngine, build_engine
from .errors import TranscriptionError
from .extractor import extract_segments
from .models import DEFAULT_MODELS_DIR, ModelName, parse_model_name, resolve_model_path
from .settings import Settings
from .types import TranscriptionResult

logger = logging.getLogger(__name__)


class TranscriptionService:
    """Runs normalize, decode, inference and extraction for one request."""

    def __init__(
        self,
        *,
        pool: ContextPool,
        normalizer: Optional[AudioNormalizer] = None,
        decoder: Optional[SampleDecoder] = None,
        models_dir: str | Path = DEFAULT_MODELS_DIR,
        model_template: Optional[str] = None,
    ) -> None:
        self._pool = pool
        self._normalizer = normalizer or AudioNormalizer()
        self._decoder = decoder or SampleDecoder()
        self._models_dir = Path(models_dir)
        self._model_template = model_template or pool.engine.model_template

    @classmethod
    def from_settings(cls, cfg: Settings, *, engine: Optional[InferenceEngine] = None) -> "TranscriptionService":
        engine_cfg = cfg.engine
        if engine is None:
            engine = build_engine(
                engine_cfg.backend,
                strategy=DecodingStrategy.parse(engine_cfg.decoding_strategy),
                beam_size=engine_cfg.beam_size,
                language=engine_cfg.language,
                threads=engine_cfg.threads,
                device=engine_cfg.device,
                compute_type=engine_cfg.compute_type,
            )
        transcoder = FfmpegTranscoder(
            binary=cfg.audio.ffmpeg_binary,
            sample_rate=CANONICAL_SAMPLE_RATE,
            timeout=cfg.audio.ffmpeg_timeout,
        )
        return cls(
            pool=ContextPool(engine=engine, max_sessions=engine_cfg.max_sessions),
            normalizer=AudioNormalizer(transcoder=transcoder),
            models_dir=engine_cfg.models_dir,
            model_template=engine_cfg.model_template,
        )

    @property
    def pool(self) -> ContextPool:
        return self._pool

    @property
    def models_dir(self) -> Path:
        return self._models_dir

    async def transcribe(self, *, model: ModelName | str, audio: bytes) -> TranscriptionResult:
        # Resolved up front so a missing model never reaches ffmpeg or the engine.
        name = parse_model_name(model)
        model_path = resolve_model_path(name, self._models_dir, self._model_template)
        return await asyncio.to_thread(self.transcribe_sync, name, model_path, audio)

    def transcribe_sync(self, name: ModelName, model_path: Path, audio: bytes) -> TranscriptionResult:
        started = time.perf_counter()
        stage, stage_started = self._begin("normalize", name)
        try:
            canonical = self._normalizer.normalize(audio)

            stage, stage_started = self._begin("decode", name)
            samples = self._decoder.decode(canonical)

            stage, stage_started = self._begin("inference", name)
            with self._pool.session(model_path) as session:
                count = session.run(samples)
                stage, stage_started = self._begin("extract", name)
                segments = extract_segments(session, count)
        except TranscriptionError as exc:
            logger.error(
                f"transcribe.{stage}.failed",
                extra={
                    "model": name.value,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                    "elapsed_ms": _elapsed_ms(stage_started),
                },
            )
            raise

        result = TranscriptionResult(
            segments=segments,
            reported_segments=count,
            model=name.value,
            duration_seconds=len(samples) / float(CANONICAL_SAMPLE_RATE),
        )
        logger.info(
            "transcribe.done",
            extra={
                "model": name.value,
                "segments": len(result.segments),
                "dropped": result.dropped_segments,
                "elapsed_ms": _elapsed_ms(started),
            },
        )
        return result

    @staticmethod
    def _begin(stage: str, name: ModelName) -> Tuple[str, float]:
        logger.debug(f"transcribe.{stage}.start", extra={"model": name.value})
        return stage, time.perf_counter()


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000.0, 1)


__all__ = ["TranscriptionService"]
