"""LiveScribe - chunked live transcription with per-request metrics."""

__version__ = "0.1.0"
