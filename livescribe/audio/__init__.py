"""Audio capture, sniffing and normalization."""

from .capture import AudioDevice, ChunkRecorder
from .normalizer import AudioNormalizer, NormalizedAudio
from .sniffer import AudioContainer, sniff, sniff_file

__all__ = [
    'AudioDevice',
    'ChunkRecorder',
    'AudioNormalizer',
    'NormalizedAudio',
    'AudioContainer',
    'sniff',
    'sniff_file',
]
