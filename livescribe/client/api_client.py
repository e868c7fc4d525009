"""HTTP client for the ingest server."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Generic, List, Optional, TypeVar

import aiohttp
from pydantic import ValidationError

from ..models.metrics import FILE_UPLOAD, MetricRecord, MetricsContainer
from ..models.transcription import TranscriptionResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ApiResult(Generic[T]):
    """Outcome of an API call; transport and HTTP errors never raise."""
    is_success: bool
    data: Optional[T] = None
    error_message: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def success(cls, data: T) -> "ApiResult[T]":
        return cls(is_success=True, data=data)

    @classmethod
    def failure(cls, message: str, status_code: Optional[int] = None) -> "ApiResult[T]":
        return cls(is_success=False, error_message=message, status_code=status_code)


class TranscriptionApiClient:
    """Talks to the transcription, metrics and model endpoints.

    A fresh ClientSession is opened per call so the client can be shared
    by worker threads that each run their own event loop.
    """

    def __init__(self, base_url: str, timeout_seconds: float = 300):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        logger.info(f"TranscriptionApiClient initialized for {self.base_url}")

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def transcribe_wav(self,
                             audio_data: bytes,
                             file_name: str,
                             transcription_type: str = FILE_UPLOAD,
                             session_id: Optional[str] = None,
                             chunk_index: Optional[int] = None) -> ApiResult[TranscriptionResponse]:
        """Upload audio bytes for transcription."""
        if not audio_data:
            return ApiResult.failure("Audio data cannot be empty", 400)
        if not file_name or not file_name.strip():
            return ApiResult.failure("File name cannot be empty", 400)

        form = aiohttp.FormData()
        form.add_field("file", audio_data, filename=file_name, content_type="audio/wav")
        form.add_field("transcriptionType", transcription_type)
        if session_id:
            form.add_field("sessionId", session_id)
        if chunk_index is not None:
            form.add_field("chunkIndex", str(chunk_index))

        logger.info(f"Transcribing {file_name} ({len(audio_data)} bytes, type={transcription_type})")
        body = await self._request("POST", "/api/whisper/transcribe-wav", data=form)
        if not body.is_success:
            return body
        return _parse(TranscriptionResponse, body.data)

    async def transcribe_file(self, file_path: str,
                              transcription_type: str = FILE_UPLOAD) -> ApiResult[TranscriptionResponse]:
        """Upload a local file for whole-file transcription."""
        path = Path(file_path)
        if not path.is_file():
            return ApiResult.failure(f"File not found: {file_path}", 404)
        return await self.transcribe_wav(path.read_bytes(), path.name, transcription_type)

    async def transcribe_path(self, server_path: str) -> ApiResult[TranscriptionResponse]:
        """Ask the server to transcribe a file on its own filesystem."""
        body = await self._request("POST", "/api/whisper/transcribe", json={"filePath": server_path})
        if not body.is_success:
            return body
        return _parse(TranscriptionResponse, body.data)

    async def get_model_details(self) -> ApiResult[Dict[str, Any]]:
        return await self._request("GET", "/api/whisper/modelDetails")

    async def get_metrics(self) -> ApiResult[List[MetricRecord]]:
        body = await self._request("GET", "/api/whisper/metrics")
        if not body.is_success:
            return body
        parsed = _parse(MetricsContainer, body.data)
        if not parsed.is_success:
            return parsed
        logger.info(f"Fetched {len(parsed.data.transcription_metrics)} metrics")
        return ApiResult.success(parsed.data.transcription_metrics)

    async def clear_metrics(self) -> ApiResult[bool]:
        body = await self._request("DELETE", "/api/whisper/metrics")
        if not body.is_success:
            return body
        return ApiResult.success(bool(body.data.get("success")))

    async def _request(self, method: str, path: str, **kwargs) -> ApiResult[Any]:
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(method, self._url(path), **kwargs) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        logger.error(f"{method} {path} failed. Status: {response.status}, Content: {error_text}")
                        return ApiResult.failure(
                            f"Request failed with status {response.status}: {error_text}",
                            response.status,
                        )
                    return ApiResult.success(await response.json())
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"{method} {path} failed: {e}")
            return ApiResult.failure(f"Unexpected error: {e}")


def _parse(model, data: Any) -> ApiResult:
    try:
        return ApiResult.success(model.model_validate(data))
    except ValidationError as e:
        return ApiResult.failure(f"Failed to deserialize response: {e}")
