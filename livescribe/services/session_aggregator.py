"""Roll metric records up into per-session summaries and sort them for display."""

import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..models.metrics import MetricRecord, SessionSummary

logger = logging.getLogger(__name__)


def _duration(summary: SessionSummary) -> float:
    return summary.audio_duration_seconds or 0.0


# Display column name -> sort key.
SORT_KEYS: Dict[str, Callable[[SessionSummary], Any]] = {
    "timestamp": lambda s: s.timestamp,
    "modelName": lambda s: s.model_name,
    "transcriptionType": lambda s: s.transcription_type,
    "fileSizeBytes": lambda s: s.file_size_bytes,
    "audioDurationSeconds": _duration,
    "totalTimeMs": lambda s: s.total_time_ms,
    "preprocessingTimeMs": lambda s: s.preprocessing_time_ms,
    "transcriptionTimeMs": lambda s: s.transcription_time_ms,
    "success": lambda s: s.success,
}


def aggregate(records: Iterable[MetricRecord]) -> List[SessionSummary]:
    """Collapse records sharing a session id into one summary each.

    Records without a session id are passed through untouched.
    """
    sessions: "OrderedDict[str, List[MetricRecord]]" = OrderedDict()
    summaries: List[SessionSummary] = []

    for record in records:
        if record.session_id:
            sessions.setdefault(record.session_id, []).append(record)
        else:
            summaries.append(record)

    for session_id, group in sessions.items():
        summaries.append(summarize_session(group))
        logger.debug(f"Session {session_id}: {len(group)} record(s)")

    return summaries


def summarize_session(group: Sequence[MetricRecord]) -> SessionSummary:
    """Build the summary for records that share one session id."""
    if len(group) == 1:
        return group[0]

    ordered = sorted(group, key=lambda r: (r.chunk_index if r.chunk_index is not None else -1, r.timestamp))
    errors = [r.error_message for r in ordered if r.error_message]
    first = ordered[0]

    return first.model_copy(update={
        "timestamp": min(r.timestamp for r in group),
        "file_name": f"{len(group)} chunks",
        "chunk_index": None,
        "file_size_bytes": sum(r.file_size_bytes for r in group),
        "audio_duration_seconds": sum(r.audio_duration_seconds or 0.0 for r in group),
        "preprocessing_time_ms": sum(r.preprocessing_time_ms for r in group),
        "transcription_time_ms": sum(r.transcription_time_ms for r in group),
        "total_time_ms": sum(r.total_time_ms for r in group),
        "success": all(r.success for r in group),
        "error_message": "; ".join(errors) if errors else None,
        "transcribed_text": " ".join(r.transcribed_text for r in ordered if r.transcribed_text),
    })


def sort_summaries(summaries: Sequence[SessionSummary],
                   column: str,
                   ascending: bool = True) -> List[SessionSummary]:
    """Stable sort by a display column; unknown columns leave the order as is."""
    key = SORT_KEYS.get(column)
    if key is None:
        return list(summaries)
    return sorted(summaries, key=key, reverse=not ascending)


class SessionAggregator:
    """Aggregation plus the sort state of a metrics table.

    Sorting by the column already selected flips the direction; choosing a
    different column starts over in the requested direction.
    """

    def __init__(self):
        self.sort_column: Optional[str] = None
        self.ascending = True

    def aggregate(self, records: Iterable[MetricRecord]) -> List[SessionSummary]:
        return aggregate(records)

    def sort(self, summaries: Sequence[SessionSummary],
             column: str,
             ascending: bool = True) -> List[SessionSummary]:
        if column not in SORT_KEYS:
            logger.debug(f"Ignoring sort on unknown column {column!r}")
            return list(summaries)

        if column == self.sort_column:
            self.ascending = not self.ascending
        else:
            self.sort_column = column
            self.ascending = ascending
        return sort_summaries(summaries, column, self.ascending)
