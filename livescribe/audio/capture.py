"""Microphone access for fixed-length chunk capture."""

import io
import logging
import wave
from typing import Optional

import numpy as np
import pyaudio


logger = logging.getLogger(__name__)


class ChunkRecorder:
    """Records one fixed-length WAV chunk from the default input device.

    A new recorder is created for every chunk; it owns its PyAudio
    instance and releases it before ``record`` returns.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        frames_per_buffer: int = 1024,
        format: int = pyaudio.paInt16,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self.frames_per_buffer = frames_per_buffer
        self.format = format
        self.peak_level = 0.0

    def record(self, seconds: float) -> bytes:
        """Record ``seconds`` of audio and return it as WAV bytes."""
        pyaudio_instance = pyaudio.PyAudio()
        stream = None
        try:
            stream = pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.frames_per_buffer,
            )
            total_frames = int(self.sample_rate * seconds)
            frames = []
            remaining = total_frames
            while remaining > 0:
                count = min(self.frames_per_buffer, remaining)
                frames.append(stream.read(count, exception_on_overflow=False))
                remaining -= count
            sample_width = pyaudio_instance.get_sample_size(self.format)
        finally:
            if stream:
                stream.stop_stream()
                stream.close()
            pyaudio_instance.terminate()

        pcm = b"".join(frames)
        self.peak_level = _peak_level(pcm)
        logger.debug(f"Recorded {len(pcm)} bytes ({seconds}s), peak={self.peak_level:.2f}")
        return _to_wav(pcm, self.sample_rate, self.channels, sample_width)


class AudioDevice:
    """Factory for per-chunk recorders plus the microphone permission probe."""

    def __init__(self, sample_rate: int = 16000, channels: int = 1, frames_per_buffer: int = 1024):
        self.sample_rate = sample_rate
        self.channels = channels
        self.frames_per_buffer = frames_per_buffer

    def check_permission(self) -> bool:
        """Return True if an input stream can be opened."""
        pyaudio_instance: Optional[pyaudio.PyAudio] = None
        try:
            pyaudio_instance = pyaudio.PyAudio()
            stream = pyaudio_instance.open(
                format=pyaudio.paInt16,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.frames_per_buffer,
            )
            stream.close()
            return True
        except (OSError, IOError) as e:
            logger.warning(f"Microphone not available: {e}")
            return False
        finally:
            if pyaudio_instance:
                pyaudio_instance.terminate()

    def create_recorder(self) -> ChunkRecorder:
        return ChunkRecorder(
            sample_rate=self.sample_rate,
            channels=self.channels,
            frames_per_buffer=self.frames_per_buffer,
        )


def _peak_level(pcm: bytes) -> float:
    if not pcm:
        return 0.0
    samples = np.frombuffer(pcm, dtype=np.int16)
    return float(np.max(np.abs(samples.astype(np.int32)))) / 32768.0


def _to_wav(pcm: bytes, sample_rate: int, channels: int, sample_width: int) -> bytes:
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return buffer.getvalue()
