"""Local Whisper transcription backend built on faster-whisper."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from faster_whisper import WhisperModel

from .base import AbstractTranscriptionBackend
from ..models.transcription import Segment

logger = logging.getLogger(__name__)


class WhisperBackend(AbstractTranscriptionBackend):
    """Whisper backend holding one long-lived model for all requests."""

    def __init__(self,
                 model: str = "base",
                 device: str = "cpu",
                 compute_type: str = "int8",
                 language: Optional[str] = None):
        """Initialize Whisper backend.

        Args:
            model: Model size name ("base", "small"...) or path to a converted model
            device: "cpu", "cuda" or "auto"
            compute_type: Quantization used by CTranslate2 (e.g. "int8", "float16")
            language: Language code, or None to auto-detect per request
        """
        super().__init__(language or "auto")
        self.model_ref = model
        self.device = device
        self.compute_type = compute_type
        self.model: Optional[WhisperModel] = None
        self.model_name = f"whisper-{Path(model).name}"

    def initialize(self) -> bool:
        logger.info(f"Loading Whisper model '{self.model_ref}' on {self.device} ({self.compute_type})")
        self.model = WhisperModel(self.model_ref, device=self.device, compute_type=self.compute_type)
        logger.info("✅ Whisper model loaded")
        return True

    def transcribe(self, audio_path: Path) -> Iterator[Segment]:
        if self.model is None:
            raise RuntimeError("Whisper backend used before initialize()")

        language = None if self.language == "auto" else self.language
        segments, info = self.model.transcribe(str(audio_path), language=language)
        logger.debug(f"Detected language {info.language} ({info.language_probability:.2f}) for {audio_path}")
        for segment in segments:
            yield Segment(start=segment.start, end=segment.end, text=segment.text.strip())

    def model_info(self) -> Dict[str, Any]:
        path = self.model_ref if os.path.exists(self.model_ref) else None
        return {
            "name": self.model_name,
            "path": path,
            "size": _directory_size(path) if path else None,
            "quantization": self.compute_type,
            "type": "whisper",
        }

    def cleanup(self) -> None:
        self.model = None


def _directory_size(path: str) -> int:
    if os.path.isfile(path):
        return os.path.getsize(path)
    total = 0
    for root, _, files in os.walk(path):
        for name in files:
            total += os.path.getsize(os.path.join(root, name))
    return total
