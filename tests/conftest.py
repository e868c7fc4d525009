"""Pytest configuration and fixtures for LiveScribe tests."""

import io
import logging
import tempfile
import threading
import time
import wave
from pathlib import Path
from typing import Dict, Iterator, List
from unittest.mock import Mock, patch

import numpy as np
import pytest

from livescribe.models.transcription import Segment
from livescribe.services.ingest_gateway import IngestGateway
from livescribe.services.metrics_recorder import MetricsRecorder
from livescribe.transcription.base import AbstractTranscriptionBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeBackend(AbstractTranscriptionBackend):
    """Backend that returns canned segments, optionally after a delay."""

    model_name = "fake-model"

    def __init__(self, segments: List[Segment] = None, delay: float = 0.0, error: Exception = None):
        super().__init__("en-US")
        self.segments = segments if segments is not None else [Segment(0.0, 1.5, "hello world")]
        self.delay = delay
        self.error = error
        self.calls: List[Path] = []
        self._lock = threading.Lock()

    def transcribe(self, audio_path: Path) -> Iterator[Segment]:
        with self._lock:
            self.calls.append(Path(audio_path))
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        yield from self.segments

    def initialize(self) -> bool:
        return True

    def model_info(self) -> Dict[str, object]:
        return {"name": self.model_name, "path": None, "size": None, "quantization": None, "type": "fake"}

    def cleanup(self) -> None:
        pass


def make_wav_bytes(samples: np.ndarray, sample_rate: int = 16000) -> bytes:
    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(samples.astype(np.int16).tobytes())
    return buffer.getvalue()


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # 1024 samples of a 440 Hz sine wave at 16 kHz
    sample_rate = 16000
    duration = 1024 / sample_rate
    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * 440 * t)
    return (wave_data * 32767).astype(np.int16)


@pytest.fixture
def wav_bytes(sample_audio_chunk):
    """One second of 16 kHz mono PCM16 as a complete WAV file."""
    return make_wav_bytes(np.tile(sample_audio_chunk, 16)[:16000])


@pytest.fixture
def sample_audio_file(temp_data_dir, wav_bytes):
    """Create a sample WAV file for testing."""
    file_path = Path(temp_data_dir) / "test_audio.wav"
    file_path.write_bytes(wav_bytes)
    return str(file_path)


@pytest.fixture
def caff_file(temp_data_dir):
    """A file with a Core Audio header and no usable audio."""
    file_path = Path(temp_data_dir) / "recording.caf"
    file_path.write_bytes(b"caff\x00\x01\x00\x00desc" + b"\x00" * 64)
    return str(file_path)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def recorder():
    return MetricsRecorder()


@pytest.fixture
def upload_dir(temp_data_dir):
    path = Path(temp_data_dir) / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def gateway(fake_backend, recorder, upload_dir):
    return IngestGateway(fake_backend, recorder, temp_dir=str(upload_dir))


@pytest.fixture
def backend_factory():
    """Build FakeBackend instances with custom segments, delay or error."""
    return FakeBackend


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Half-scale constant signal, 1024 frames per read
        mock_stream.read.side_effect = lambda count, **kwargs: np.full(count, 16384, dtype=np.int16).tobytes()

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.get_sample_size.return_value = 2

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }
