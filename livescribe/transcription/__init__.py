"""Transcription backends for LiveScribe."""

from .base import AbstractTranscriptionBackend
from .factory import create_backend

__all__ = [
    "AbstractTranscriptionBackend",
    "create_backend",
]
