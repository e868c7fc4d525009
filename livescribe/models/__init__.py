"""Data models for the LiveScribe application."""

from .transcription import Segment, TranscriptionResponse, format_offset
from .metrics import MetricRecord, MetricsContainer, SessionSummary, STREAMING, FILE_UPLOAD
from .session import Chunk, SchedulerStatus, SessionState

__all__ = [
    "Segment",
    "TranscriptionResponse",
    "format_offset",
    "MetricRecord",
    "MetricsContainer",
    "SessionSummary",
    "STREAMING",
    "FILE_UPLOAD",
    "Chunk",
    "SchedulerStatus",
    "SessionState",
]
