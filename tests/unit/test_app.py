import base64
import dataclasses
import logging

import numpy as np
import pytest
from fastapi.testclient import TestClient

from whisper_service import app as whisper_app
from whisper_service.audio import AudioNormalizer
from whisper_service.engine import ContextPool, MockEngine, MockScript
from whisper_service.engine.mock import MockSegment
from whisper_service.logging_config import setup_logging
from whisper_service.service import TranscriptionService


@pytest.fixture
def client(monkeypatch, mock_service):
    monkeypatch.setattr(whisper_app, "transcription_service", mock_service)
    return TestClient(whisper_app.app)


def _body(model: str, audio: bytes) -> dict:
    return {"model": model, "file": base64.b64encode(audio).decode("ascii")}


def _install(monkeypatch, engine, transcoder, models_dir) -> None:
    service = TranscriptionService(
        pool=ContextPool(engine=engine),
        normalizer=AudioNormalizer(transcoder=transcoder),
        models_dir=models_dir,
    )
    monkeypatch.setattr(whisper_app, "transcription_service", service)


def _limit_body(monkeypatch, max_bytes: int) -> None:
    cfg = whisper_app.runtime_settings
    limited = dataclasses.replace(cfg, audio=dataclasses.replace(cfg.audio, max_bytes=max_bytes))
    monkeypatch.setattr(whisper_app, "runtime_settings", limited)


def test_transcribe_returns_segments(client, silent_wav):
    resp = client.post("/", json=_body("base", silent_wav))

    assert resp.status_code == 200
    assert resp.json() == {
        "segments": [
            {"start": 0, "end": 150, "text": " hello"},
            {"start": 150, "end": 320, "text": " world"},
        ]
    }


def test_transcribe_silent_audio_returns_empty_segments(monkeypatch, passthrough, models_dir, silent_wav):
    _install(monkeypatch, MockEngine(), passthrough, models_dir)

    resp = TestClient(whisper_app.app).post("/", json=_body("base", silent_wav))

    assert resp.status_code == 200
    assert resp.json() == {"segments": []}


def test_transcribe_rejects_invalid_base64(client):
    resp = client.post("/", json={"model": "base", "file": "not base64!!"})

    assert resp.status_code == 400
    assert "error" in resp.json()


def test_transcribe_rejects_unknown_model(client, silent_wav):
    resp = client.post("/", json=_body("enormous", silent_wav))

    assert resp.status_code == 400
    error = resp.json()["error"]
    assert "enormous" in error
    assert "tiny" in error and "large" in error


def test_transcribe_reports_missing_model_file(client, passthrough, silent_wav):
    resp = client.post("/", json=_body("small", silent_wav))

    assert resp.status_code == 400
    assert "ggml-small.bin" in resp.json()["error"]
    assert passthrough.calls == []


def test_transcribe_reports_unsupported_format(client, make_wav):
    wav = make_wav(np.zeros((800, 3), dtype=np.int16), sample_rate=8000)

    resp = client.post("/", json=_body("base", wav))

    assert resp.status_code == 400
    error = resp.json()["error"]
    assert "channels" in error
    assert "16000" in error


def test_transcribe_reports_inference_failure(monkeypatch, mock_service, silent_wav):
    mock_service.pool.engine.script.fail_run = "decoder diverged"
    monkeypatch.setattr(whisper_app, "transcription_service", mock_service)

    resp = TestClient(whisper_app.app).post("/", json=_body("base", silent_wav))

    assert resp.status_code == 500
    assert "decoder diverged" in resp.json()["error"]


def test_transcribe_hides_unexpected_errors(monkeypatch, silent_wav):
    class ExplodingService:
        async def transcribe(self, *, model, audio):
            raise KeyError("internal detail")

    monkeypatch.setattr(whisper_app, "transcription_service", ExplodingService())

    resp = TestClient(whisper_app.app).post("/", json=_body("base", silent_wav))

    assert resp.status_code == 500
    assert resp.json() == {"error": "internal error"}


def test_transcribe_unavailable_without_engine(monkeypatch, silent_wav):
    monkeypatch.setattr(whisper_app, "transcription_service", None)

    resp = TestClient(whisper_app.app).post("/", json=_body("base", silent_wav))

    assert resp.status_code == 503
    assert "error" in resp.json()


def test_transcribe_rejects_invalid_json(client):
    resp = client.post("/", content=b"{not json", headers={"content-type": "application/json"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "invalid json"}


@pytest.mark.parametrize("body", [{"model": "base"}, {"file": ""}, {"model": " ", "file": ""}])
def test_transcribe_rejects_incomplete_body(client, body):
    resp = client.post("/", json=body)

    assert resp.status_code == 400
    assert "error" in resp.json()


def test_transcribe_enforces_body_limit(monkeypatch, client, silent_wav):
    _limit_body(monkeypatch, 1024)

    resp = client.post("/", json=_body("base", silent_wav))

    assert resp.status_code == 413
    assert resp.json() == {"error": "audio payload too large"}


def test_health_lists_models(client, silent_wav):
    client.post("/", json=_body("base", silent_wav))

    resp = client.get("/health")

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["engine"] == "mock"
    assert data["models"] == ["tiny", "base", "small", "medium", "large"]
    assert len(data["loaded_models"]) == 1
    assert data["loaded_models"][0].endswith("ggml-base.bin")


def test_health_degraded_without_engine(monkeypatch):
    monkeypatch.setattr(whisper_app, "transcription_service", None)

    resp = TestClient(whisper_app.app).get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "degraded"
    assert resp.json()["loaded_models"] == []


def test_scripted_segments_flow_through_http(monkeypatch, passthrough, models_dir, silent_wav):
    script = MockScript(
        segments=[MockSegment(0, 40, " ok"), MockSegment(40, 90, " lost")],
        accessor_errors={(1, "end"): "no timestamp"},
    )
    _install(monkeypatch, MockEngine(script=script), passthrough, models_dir)

    resp = TestClient(whisper_app.app).post("/", json=_body("base", silent_wav))

    assert resp.json() == {"segments": [{"start": 0, "end": 40, "text": " ok"}]}


def _server_settings(**overrides):
    return dataclasses.replace(whisper_app.runtime_settings.server, **overrides)


def test_server_config_keeps_uvicorn_logs_on_root_handlers():
    server = _server_settings(access_log=True, log_format="%(levelname)s %(message)s")
    setup_logging(server.log_level, server.log_format)

    config = whisper_app.build_server_config(server)

    assert config.log_config is None
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uv = logging.getLogger(name)
        assert uv.handlers == []
        assert uv.propagate is True


def test_main_serves_app_with_configured_logging(monkeypatch):
    served = []

    class FakeServer:
        def __init__(self, config):
            self.config = config

        def run(self):
            served.append(self.config)

    cfg = whisper_app.runtime_settings
    server = _server_settings(port=9123, log_format="%(message)s")
    monkeypatch.setattr(whisper_app, "runtime_settings", dataclasses.replace(cfg, server=server))
    monkeypatch.setattr(whisper_app.uvicorn, "Server", FakeServer)

    whisper_app.main()

    assert len(served) == 1
    assert served[0].app == "whisper_service.app:app"
    assert served[0].port == 9123
    assert served[0].log_config is None
    assert logging.getLogger().handlers[0].formatter._fmt == "%(message)s"
