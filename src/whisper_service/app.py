import base64
import binascii
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .errors import (
    ConversionFailed,
    InvalidModelName,
    ModelNotFound,
    TranscriptionError,
    UnsupportedAudioFormat,
)
from .logging_config import setup_logging
from .models import ModelName
from .schemas import ErrorResponse, TranscribeRequest, TranscribeResponse
from .service import TranscriptionService
from .settings import ServerSettings, load_settings

logger = logging.getLogger(__name__)

runtime_settings = load_settings()

_CLIENT_ERRORS = (InvalidModelName, ModelNotFound, ConversionFailed, UnsupportedAudioFormat)

transcription_service: Optional[TranscriptionService]
try:
    transcription_service = TranscriptionService.from_settings(runtime_settings)
except Exception:  # engine backend missing or misconfigured; reported by /health and every request
    logger.exception("transcribe.engine_init_failed", extra={"engine": runtime_settings.engine.backend})
    transcription_service = None


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    if transcription_service is not None:
        transcription_service.pool.clear()


app = FastAPI(title="whisper-service", lifespan=lifespan)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(ErrorResponse(error=message).model_dump(), status_code=status_code)


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "body"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)


@app.get("/health")
async def health() -> Dict[str, Any]:
    service = transcription_service
    return {
        "status": "ok" if service is not None else "degraded",
        "service": "whisper-service",
        "engine": service.pool.engine.name if service is not None else None,
        "models_dir": str(service.models_dir) if service is not None else None,
        "models": ModelName.names(),
        "loaded_models": service.pool.loaded_models() if service is not None else [],
    }


@app.post("/")
async def transcribe(request: Request) -> JSONResponse:
    service = transcription_service
    if service is None:
        return _error(503, "inference engine unavailable")

    try:
        body = await request.json()
    except Exception:
        return _error(400, "invalid json")

    try:
        payload = TranscribeRequest.model_validate(body)
    except ValidationError as exc:
        return _error(400, _describe_validation_error(exc))

    try:
        audio = base64.b64decode(payload.file, validate=True)
    except (binascii.Error, ValueError) as exc:
        return _error(400, str(exc))

    max_bytes = runtime_settings.audio.max_bytes
    if max_bytes > 0 and len(audio) > max_bytes:
        return _error(413, "audio payload too large")

    logger.info("transcribe.request", extra={"model": payload.model, "audio_bytes": len(audio)})
    started = time.perf_counter()
    try:
        result = await service.transcribe(model=payload.model, audio=audio)
    except _CLIENT_ERRORS as exc:
        return _error(400, str(exc))
    except TranscriptionError as exc:
        return _error(500, str(exc))
    except Exception:
        logger.exception("transcribe.unexpected_error", extra={"model": payload.model})
        return _error(500, "internal error")

    logger.info(
        "transcribe.response",
        extra={
            "model": payload.model,
            "segments": len(result.segments),
            "latency_ms": round((time.perf_counter() - started) * 1000.0, 1),
        },
    )
    return JSONResponse(TranscribeResponse.from_result(result).model_dump())


def build_server_config(server: ServerSettings) -> uvicorn.Config:
    # log_config=None keeps uvicorn's loggers on the root handlers set up by setup_logging.
    return uvicorn.Config(
        "whisper_service.app:app",
        host=server.host,
        port=server.port,
        access_log=server.access_log,
        log_config=None,
        reload=False,
    )


def main() -> None:
    server = runtime_settings.server
    setup_logging(server.log_level, server.log_format)
    uvicorn.Server(build_server_config(server)).run()


if __name__ == "__main__":
    main()
