"""Server-side entry point that turns one audio payload into timed segments."""

import logging
import os
import tempfile
import threading
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from ..audio.normalizer import AudioNormalizer
from ..audio.probe import probe_duration
from ..audio.sniffer import sniff_file
from ..errors import AudioFileNotFound, Cancelled, EmptyPayload, EngineFailure
from ..models.metrics import FILE_UPLOAD, MetricRecord
from ..models.transcription import Segment
from ..transcription.base import AbstractTranscriptionBackend
from .metrics_recorder import MetricsRecorder

logger = logging.getLogger(__name__)


class IngestGateway:
    """Drives sniff -> normalize -> transcribe -> record for each request.

    Every attempt that gets past payload validation appends exactly one
    MetricRecord, including failed ones, before the failure propagates.
    Temp files created for a request are removed before it returns.
    """

    def __init__(self,
                 backend: AbstractTranscriptionBackend,
                 recorder: MetricsRecorder,
                 normalizer: Optional[AudioNormalizer] = None,
                 temp_dir: Optional[str] = None):
        self.backend = backend
        self.recorder = recorder
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
        self.normalizer = normalizer or AudioNormalizer(temp_dir=str(self.temp_dir))

    def ingest(self,
               payload: bytes,
               file_name: str,
               transcription_kind: str = FILE_UPLOAD,
               session_id: Optional[str] = None,
               chunk_index: Optional[int] = None,
               cancel_event: Optional[threading.Event] = None) -> Tuple[List[Segment], MetricRecord]:
        """Transcribe an uploaded payload.

        Raises:
            EmptyPayload: payload has no bytes (no metric is recorded)
            TruncatedInput, UnsupportedFormat, EngineFailure, Cancelled
        """
        if not payload:
            raise EmptyPayload(file_name)

        safe_name = Path(file_name).name or "upload.wav"
        upload_path = self.temp_dir / f"{uuid.uuid4().hex}_{safe_name}"
        temp_files = [upload_path]
        try:
            return self._process(upload_path, safe_name, len(payload), transcription_kind,
                                 session_id, chunk_index, cancel_event, temp_files,
                                 payload=payload)
        finally:
            _remove_temp_files(temp_files)

    def ingest_path(self,
                    file_path: str,
                    transcription_kind: str = FILE_UPLOAD,
                    session_id: Optional[str] = None,
                    chunk_index: Optional[int] = None,
                    cancel_event: Optional[threading.Event] = None) -> Tuple[List[Segment], MetricRecord]:
        """Transcribe a file already on the server's filesystem.

        The file itself is left untouched; only conversion output is removed.

        Raises:
            AudioFileNotFound: ``file_path`` does not exist
        """
        source = Path(file_path)
        size = source.stat().st_size if source.is_file() else 0
        temp_files: List[Path] = []
        try:
            return self._process(source, source.name, size, transcription_kind,
                                 session_id, chunk_index, cancel_event, temp_files)
        finally:
            _remove_temp_files(temp_files)

    def _process(self,
                 source: Path,
                 file_name: str,
                 file_size: int,
                 transcription_kind: str,
                 session_id: Optional[str],
                 chunk_index: Optional[int],
                 cancel_event: Optional[threading.Event],
                 temp_files: List[Path],
                 payload: Optional[bytes] = None) -> Tuple[List[Segment], MetricRecord]:
        timestamp = datetime.now(timezone.utc)
        started = time.perf_counter()
        preprocessing_ms = 0
        transcription_ms = 0
        duration: Optional[float] = None
        segments: List[Segment] = []
        error: Optional[Exception] = None

        try:
            if payload is not None:
                _save_upload(source, payload)
            if not source.is_file():
                raise AudioFileNotFound(str(source))
            _check_cancelled(cancel_event, "preprocessing")

            step_start = time.perf_counter()
            try:
                normalized = self.normalizer.normalize(source, sniff_file(source))
                if normalized.is_temporary:
                    temp_files.append(normalized.path)
                duration = probe_duration(normalized.path)
            finally:
                preprocessing_ms = _elapsed_ms(step_start)

            _check_cancelled(cancel_event, "transcription")

            step_start = time.perf_counter()
            try:
                segments = self._transcribe(normalized.path, file_name)
            finally:
                transcription_ms = _elapsed_ms(step_start)
        except Exception as e:
            error = e

        metric = MetricRecord(
            timestamp=timestamp,
            model_name=self.backend.model_name,
            file_name=file_name,
            transcription_type=transcription_kind,
            session_id=session_id or None,
            chunk_index=chunk_index,
            file_size_bytes=file_size,
            audio_duration_seconds=duration,
            preprocessing_time_ms=preprocessing_ms,
            transcription_time_ms=transcription_ms,
            total_time_ms=_elapsed_ms(started),
            success=error is None,
            error_message=str(error) if error else None,
            transcribed_text=" ".join(s.text for s in segments if s.text),
        )
        self.recorder.record(metric)

        if error is not None:
            logger.error(f"Transcription of {file_name} failed after {metric.total_time_ms}ms: {error}")
            raise error

        logger.info(f"✅ Transcribed {file_name}: {len(segments)} segments in {metric.total_time_ms}ms "
                    f"(preprocessing {preprocessing_ms}ms, engine {transcription_ms}ms)")
        return segments, metric

    def _transcribe(self, audio_path: Path, file_name: str) -> List[Segment]:
        """Run the engine and drain its lazy segment stream."""
        try:
            return list(self.backend.transcribe(audio_path))
        except Exception as e:
            raise EngineFailure(file_name, e) from e


def _save_upload(path: Path, payload: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'wb') as f:
        f.write(payload)
    logger.info(f"Saved upload ({len(payload)} bytes) to {path}")


def _check_cancelled(cancel_event: Optional[threading.Event], stage: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise Cancelled(stage)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _remove_temp_files(paths: List[Path]) -> None:
    for path in paths:
        try:
            os.unlink(path)
            logger.debug(f"Removed temp file {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temp file {path}: {e}")
