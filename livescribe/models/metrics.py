"""Metric records describing individual transcription attempts."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

STREAMING = "Streaming"
FILE_UPLOAD = "File Upload"


class MetricRecord(BaseModel):
    """One immutable log entry for a single transcription attempt.

    Serialized with camelCase keys so the JSON matches what clients
    send and expect (``totalTimeMs``, ``sessionId``...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    timestamp: datetime
    model_name: str = ""
    file_name: str = ""
    transcription_type: str = FILE_UPLOAD
    session_id: Optional[str] = None
    chunk_index: Optional[int] = None
    file_size_bytes: int = 0
    audio_duration_seconds: Optional[float] = None
    preprocessing_time_ms: int = 0
    transcription_time_ms: int = 0
    total_time_ms: int = 0
    success: bool = False
    error_message: Optional[str] = None
    transcribed_text: str = ""

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# Summaries share the record shape; a single-record session is the record itself.
SessionSummary = MetricRecord


class MetricsContainer(BaseModel):
    """Wire shape of the metrics endpoint."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    transcription_metrics: List[MetricRecord] = Field(default_factory=list)
