"""Services layer for LiveScribe: ingest, metrics, live capture and reporting."""

from .capture_scheduler import SessionCaptureScheduler
from .ingest_gateway import IngestGateway
from .metrics_recorder import MetricsRecorder
from .session_aggregator import SessionAggregator, aggregate, sort_summaries

__all__ = [
    "IngestGateway",
    "MetricsRecorder",
    "SessionCaptureScheduler",
    "SessionAggregator",
    "aggregate",
    "sort_summaries",
]
