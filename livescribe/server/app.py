"""aiohttp application exposing transcription, metrics and model endpoints.

Endpoints:
  GET    /healthz                       -> "ok"
  GET    /api/whisper/modelDetails      -> engine metadata
  POST   /api/whisper/transcribe        -> {"filePath": ...} path-based ingest
  POST   /api/whisper/transcribe-wav    -> multipart upload ingest
  GET    /api/whisper/metrics           -> {"transcriptionMetrics": [...]}
  DELETE /api/whisper/metrics           -> {"success": bool}
"""

import asyncio
import functools
import logging
import threading
from pathlib import Path
from typing import Optional

from aiohttp import web

from ..errors import (
    AudioFileNotFound,
    Cancelled,
    EmptyPayload,
    EngineFailure,
    LiveScribeError,
    TruncatedInput,
    UnsupportedFormat,
)
from ..models.metrics import FILE_UPLOAD, MetricsContainer
from ..models.transcription import TranscriptionResponse
from ..services.ingest_gateway import IngestGateway

logger = logging.getLogger(__name__)

GATEWAY_KEY = web.AppKey("gateway", IngestGateway)

MAX_UPLOAD_BYTES = 200 * 1024 * 1024
AUDIO_EXTENSIONS = {".wav", ".caf", ".m4a", ".mp3", ".aac", ".ogg", ".flac", ".wma", ".webm", ".mp4"}

# Status codes for failures that reach the HTTP boundary.
ERROR_STATUS = {
    AudioFileNotFound: 404,
    TruncatedInput: 422,
    UnsupportedFormat: 415,
    EngineFailure: 500,
    Cancelled: 499,
}


def is_audio_upload(file_name: str, content_type: Optional[str]) -> bool:
    """Loose check that an upload is meant to be audio."""
    if content_type and content_type.lower().startswith("audio/"):
        return True
    return Path(file_name or "").suffix.lower() in AUDIO_EXTENSIONS


def _empty_results() -> web.Response:
    return web.json_response(TranscriptionResponse().model_dump())


def _error_response(error: Exception) -> web.Response:
    status = 500
    for error_type, code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            status = code
            break
    return web.json_response(
        {"error": str(error), "kind": type(error).__name__},
        status=status,
    )


async def _run_ingest(func, **kwargs) -> web.Response:
    """Run a blocking gateway call off the event loop, honouring cancellation."""
    cancel_event = threading.Event()
    loop = asyncio.get_running_loop()
    call = functools.partial(func, cancel_event=cancel_event, **kwargs)
    try:
        segments, _ = await loop.run_in_executor(None, call)
    except asyncio.CancelledError:
        cancel_event.set()
        raise
    except EmptyPayload as e:
        logger.info(f"Empty upload treated as no speech: {e}")
        return _empty_results()
    except LiveScribeError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception(f"Unexpected ingest failure: {e}")
        return _error_response(e)
    return web.json_response(TranscriptionResponse.from_segments(segments).model_dump())


async def healthz(request: web.Request) -> web.Response:
    return web.Response(text="ok")


async def model_details(request: web.Request) -> web.Response:
    gateway = request.app[GATEWAY_KEY]
    return web.json_response(gateway.backend.model_info())


async def transcribe_path(request: web.Request) -> web.Response:
    try:
        body = await request.json()
    except ValueError:
        return web.json_response({"error": "Request body must be JSON"}, status=400)
    file_path = body.get("filePath") if isinstance(body, dict) else None
    if not file_path:
        return web.json_response({"error": "filePath is required"}, status=400)

    gateway = request.app[GATEWAY_KEY]
    logger.info(f"Path transcription requested: {file_path}")
    return await _run_ingest(
        gateway.ingest_path,
        file_path=file_path,
        transcription_kind=body.get("transcriptionType") or FILE_UPLOAD,
    )


async def transcribe_upload(request: web.Request) -> web.Response:
    form = await request.post()
    upload = form.get("file") or form.get("File")
    if not isinstance(upload, web.FileField):
        logger.info("Upload without a file part treated as no speech")
        return _empty_results()

    if not is_audio_upload(upload.filename, upload.content_type):
        logger.info(f"Non-audio upload treated as no speech: {upload.filename} ({upload.content_type})")
        return _empty_results()

    chunk_index = None
    raw_index = form.get("chunkIndex")
    if raw_index not in (None, ""):
        try:
            chunk_index = int(raw_index)
        except (TypeError, ValueError):
            return web.json_response({"error": f"Invalid chunkIndex: {raw_index}"}, status=400)

    payload = upload.file.read()
    gateway = request.app[GATEWAY_KEY]
    return await _run_ingest(
        gateway.ingest,
        payload=payload,
        file_name=upload.filename,
        transcription_kind=form.get("transcriptionType") or FILE_UPLOAD,
        session_id=form.get("sessionId") or None,
        chunk_index=chunk_index,
    )


async def get_metrics(request: web.Request) -> web.Response:
    recorder = request.app[GATEWAY_KEY].recorder
    container = MetricsContainer(transcription_metrics=list(recorder.all()))
    return web.json_response(container.model_dump(mode="json", by_alias=True))


async def clear_metrics(request: web.Request) -> web.Response:
    recorder = request.app[GATEWAY_KEY].recorder
    return web.json_response({"success": recorder.clear()})


def create_app(gateway: IngestGateway) -> web.Application:
    app = web.Application(client_max_size=MAX_UPLOAD_BYTES)
    app[GATEWAY_KEY] = gateway
    app.router.add_get("/healthz", healthz)
    app.router.add_get("/api/whisper/modelDetails", model_details)
    app.router.add_post("/api/whisper/transcribe", transcribe_path)
    app.router.add_post("/api/whisper/transcribe-wav", transcribe_upload)
    app.router.add_get("/api/whisper/metrics", get_metrics)
    app.router.add_delete("/api/whisper/metrics", clear_metrics)
    return app


def run_server(gateway: IngestGateway, host: str, port: int) -> None:
    logger.info(f"Starting ingest server on http://{host}:{port}")
    web.run_app(create_app(gateway), host=host, port=port, print=None)
