"""Terminal UI built on rich."""

from .live_screen import LiveTranscriptionScreen
from .metrics_table import build_metrics_table, format_duration, format_file_size

__all__ = [
    "LiveTranscriptionScreen",
    "build_metrics_table",
    "format_duration",
    "format_file_size",
]
