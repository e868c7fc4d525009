"""Exceptions raised along the ingest and capture pipeline."""

from typing import Optional


class LiveScribeError(Exception):
    """Base class for all LiveScribe failures."""


class EmptyPayload(LiveScribeError):
    """Raised when an upload carries no audio bytes."""

    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(f"No audio data provided for '{file_name}'")


class TruncatedInput(LiveScribeError):
    """Raised when fewer header bytes are available than the sniffer needs."""

    def __init__(self, available: int, required: int = 12):
        self.available = available
        self.required = required
        super().__init__(
            f"Audio header truncated: {available} bytes available, {required} required"
        )


class UnsupportedFormat(LiveScribeError):
    """Raised when conversion failed and the input is not a native WAV file."""

    def __init__(self, header: bytes, cause: Optional[Exception] = None):
        self.header = header
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Unsupported audio format (header={header.hex()}){detail}")


class AudioFileNotFound(LiveScribeError, FileNotFoundError):
    """Raised when a path-based ingest points at a missing file."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Audio file not found: {path}")


class EngineFailure(LiveScribeError):
    """Raised when the transcription engine fails on a normalized input."""

    def __init__(self, file_name: str, cause: Optional[Exception] = None):
        self.file_name = file_name
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to transcribe audio file '{file_name}'{detail}")


class Cancelled(LiveScribeError):
    """Raised when an ingest request is cancelled before it completes."""

    def __init__(self, stage: str):
        self.stage = stage
        super().__init__(f"Request cancelled during {stage}")
