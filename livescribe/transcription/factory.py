"""Builds the configured transcription backend."""

import logging

from .base import AbstractTranscriptionBackend
from ..config import LiveScribeConfig

logger = logging.getLogger(__name__)


def create_backend(config: LiveScribeConfig) -> AbstractTranscriptionBackend:
    """Create and initialize the backend named by ``engine.backend``."""
    name = config.get('engine.backend', 'whisper')

    if name == "whisper":
        from .whisper_backend import WhisperBackend
        backend = WhisperBackend(
            model=config.get('engine.model', 'base'),
            device=config.get('engine.device', 'cpu'),
            compute_type=config.get('engine.compute_type', 'int8'),
            language=config.get('engine.language'),
        )
    elif name == "google":
        from .google_backend import GoogleSpeechBackend
        backend = GoogleSpeechBackend(
            credentials_path=config.get_google_credentials_path(),
            sample_rate=config.get('transcoder.sample_rate', 16000),
            language=config.get('google_cloud.language', 'en-US'),
            use_enhanced=config.get('google_cloud.use_enhanced_model', True),
            enable_automatic_punctuation=config.get('google_cloud.enable_automatic_punctuation', True),
        )
    else:
        raise ValueError(f"Unknown transcription backend: {name}")

    if not backend.initialize():
        raise RuntimeError(f"Transcription backend '{name}' failed to initialize")
    logger.info(f"Transcription backend ready: {backend.model_name}")
    return backend
