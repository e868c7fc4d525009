"""Client side of the pipeline: HTTP API, uploads and the live transcript."""

from .api_client import ApiResult, TranscriptionApiClient
from .live_transcript import Dispatcher, LiveTranscript
from .uploader import ChunkUploader

__all__ = [
    "ApiResult",
    "TranscriptionApiClient",
    "ChunkUploader",
    "Dispatcher",
    "LiveTranscript",
]
