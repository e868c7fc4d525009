"""Abstract base classes for transcription backends."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Any, Iterator
import logging

from ..models.transcription import Segment

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends.

    One instance is created at server start-up and shared by every
    request; backends must tolerate concurrent ``transcribe`` calls.
    """

    model_name: str = "unknown"

    def __init__(self, language: str = "en-US"):
        """Initialize backend with language preference."""
        self.language = language

    @abstractmethod
    def transcribe(self, audio_path: Path) -> Iterator[Segment]:
        """Transcribe a canonical 16kHz mono WAV file.

        Args:
            audio_path: Path to the normalized audio

        Returns:
            Lazy iterator of timed segments
        """
        pass

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def model_info(self) -> Dict[str, Any]:
        """Describe the loaded model (name, path, size, quantization, type)."""
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
