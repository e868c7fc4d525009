"""Google Speech-to-Text transcription backend."""

import logging
from pathlib import Path
from typing import Optional, Dict, Any, Iterator

from .base import AbstractTranscriptionBackend
from ..models.transcription import Segment

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class GoogleSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text API backend for transcription."""

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 sample_rate: int = 16000,
                 language: str = "en-US",
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 timeout: float = 30.0):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            sample_rate: Sample rate of the normalized audio
            language: Language code (e.g., 'en-US', 'es-ES')
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
            timeout: Per-request deadline in seconds
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.timeout = timeout
        self.client = None
        self.project_id = None
        self.model_name = "google-latest_short"
        self.config = speech.RecognitionConfig(
                encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
                sample_rate_hertz=sample_rate,
                language_code=self.language,
                use_enhanced=self.use_enhanced,
                enable_automatic_punctuation=self.enable_automatic_punctuation,
                model="latest_short",
            )

    def initialize(self) -> bool:
        """Initialize Google Speech client and verify credentials."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)

        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")

        logger.info("Google Speech-to-Text backend initialized successfully")
        return True

    def transcribe(self, audio_path: Path) -> Iterator[Segment]:
        """Transcribe a WAV file, one segment per recognition result."""
        audio = speech.RecognitionAudio(content=Path(audio_path).read_bytes())
        try:
            response = self.client.recognize(config=self.config, audio=audio, timeout=self.timeout)
        except gax_exceptions.DeadlineExceeded as e:
            logger.error(f"Google STT recognize deadline exceeded for {audio_path}")
            raise RuntimeError(f"Google Speech recognize timeout: {e}") from e
        except gax_exceptions.GoogleAPICallError as e:
            logger.error(f"Google STT API call error for {audio_path}: {e}")
            raise RuntimeError(f"Google Speech API error: {e}") from e

        start = 0.0
        for result in response.results:
            if not result.alternatives:
                continue
            end = result.result_end_time.total_seconds()
            yield Segment(start=start, end=end, text=result.alternatives[0].transcript.strip())
            start = end

    def model_info(self) -> Dict[str, Any]:
        return {
            "name": self.model_name,
            "path": None,
            "size": None,
            "quantization": None,
            "type": "google-cloud-speech",
            "language": self.language,
            "project": self.project_id,
        }

    def cleanup(self) -> None:
        """Clean up Google Speech client resources."""
        self.client = None
