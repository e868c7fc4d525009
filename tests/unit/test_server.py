"""Endpoint tests for the ingest server, run in-process with pytest-aiohttp."""

from unittest.mock import patch

import aiohttp
import pytest

from livescribe.models.metrics import STREAMING
from livescribe.server.app import create_app, is_audio_upload


def upload_form(payload: bytes, file_name: str = "chunk_0.wav", content_type: str = "audio/wav", **fields):
    form = aiohttp.FormData()
    form.add_field("file", payload, filename=file_name, content_type=content_type)
    for name, value in fields.items():
        form.add_field(name, value)
    return form


@pytest.fixture
async def client(aiohttp_client, gateway):
    return await aiohttp_client(create_app(gateway))


@pytest.mark.unit
class TestUploadEndpoint:

    async def test_transcribes_upload(self, client, recorder, wav_bytes):
        form = upload_form(wav_bytes, transcriptionType=STREAMING, sessionId="s1", chunkIndex="2")
        resp = await client.post("/api/whisper/transcribe-wav", data=form)

        assert resp.status == 200
        assert await resp.json() == {"results": ["00:00:00->00:00:01.500000: hello world"]}
        (metric,) = recorder.all()
        assert metric.session_id == "s1"
        assert metric.chunk_index == 2
        assert metric.transcription_type == STREAMING

    async def test_empty_upload_returns_no_results_and_no_metric(self, client, recorder):
        resp = await client.post("/api/whisper/transcribe-wav", data=upload_form(b""))

        assert resp.status == 200
        assert await resp.json() == {"results": []}
        assert recorder.all() == ()

    async def test_non_audio_upload_returns_no_results(self, client, recorder):
        form = upload_form(b"hello there, not audio", file_name="notes.txt", content_type="text/plain")
        resp = await client.post("/api/whisper/transcribe-wav", data=form)

        assert resp.status == 200
        assert await resp.json() == {"results": []}
        assert recorder.all() == ()

    async def test_missing_file_part(self, client):
        form = aiohttp.FormData()
        form.add_field("transcriptionType", STREAMING)
        resp = await client.post("/api/whisper/transcribe-wav", data=form)

        assert resp.status == 200
        assert await resp.json() == {"results": []}

    async def test_bad_chunk_index(self, client, wav_bytes):
        resp = await client.post("/api/whisper/transcribe-wav", data=upload_form(wav_bytes, chunkIndex="two"))
        assert resp.status == 400

    async def test_truncated_upload_is_422(self, client, recorder):
        resp = await client.post("/api/whisper/transcribe-wav", data=upload_form(b"RIFF"))

        assert resp.status == 422
        body = await resp.json()
        assert body["kind"] == "TruncatedInput"
        assert len(recorder.all()) == 1

    async def test_unsupported_upload_is_415(self, client):
        payload = b"caff\x00\x01\x00\x00desc" + b"\x00" * 32
        with patch("livescribe.audio.normalizer.shutil.which", return_value=None):
            resp = await client.post("/api/whisper/transcribe-wav",
                                     data=upload_form(payload, file_name="rec.caf", content_type="audio/x-caf"))

        assert resp.status == 415
        assert (await resp.json())["kind"] == "UnsupportedFormat"

    async def test_engine_failure_is_500(self, client, fake_backend, recorder, wav_bytes):
        fake_backend.error = RuntimeError("boom")
        resp = await client.post("/api/whisper/transcribe-wav", data=upload_form(wav_bytes))

        assert resp.status == 500
        assert (await resp.json())["kind"] == "EngineFailure"
        assert recorder.all()[0].success is False


@pytest.mark.unit
class TestPathEndpoint:

    async def test_transcribes_path(self, client, sample_audio_file):
        resp = await client.post("/api/whisper/transcribe", json={"filePath": sample_audio_file})
        assert resp.status == 200
        assert len((await resp.json())["results"]) == 1

    async def test_missing_path_is_404(self, client, recorder, tmp_path):
        resp = await client.post("/api/whisper/transcribe", json={"filePath": str(tmp_path / "gone.wav")})

        assert resp.status == 404
        assert (await resp.json())["kind"] == "AudioFileNotFound"
        assert len(recorder.all()) == 1

    async def test_file_path_required(self, client):
        resp = await client.post("/api/whisper/transcribe", json={})
        assert resp.status == 400


@pytest.mark.unit
class TestMetricsEndpoints:

    async def test_get_and_clear(self, client, recorder, wav_bytes):
        await client.post("/api/whisper/transcribe-wav", data=upload_form(wav_bytes, sessionId="s1"))

        resp = await client.get("/api/whisper/metrics")
        assert resp.status == 200
        metrics = (await resp.json())["transcriptionMetrics"]
        assert len(metrics) == 1
        assert metrics[0]["sessionId"] == "s1"
        assert metrics[0]["modelName"] == "fake-model"
        assert "totalTimeMs" in metrics[0]

        resp = await client.delete("/api/whisper/metrics")
        assert await resp.json() == {"success": True}
        assert recorder.all() == ()

    async def test_model_details(self, client):
        resp = await client.get("/api/whisper/modelDetails")
        assert (await resp.json())["name"] == "fake-model"

    async def test_healthz(self, client):
        resp = await client.get("/healthz")
        assert await resp.text() == "ok"


@pytest.mark.unit
class TestIsAudioUpload:

    @pytest.mark.parametrize("name,content_type,expected", [
        ("a.wav", None, True),
        ("a.CAF", "application/octet-stream", True),
        ("blob", "audio/mpeg", True),
        ("notes.txt", "text/plain", False),
        ("", None, False),
    ])
    def test_detection(self, name, content_type, expected):
        assert is_audio_upload(name, content_type) is expected
