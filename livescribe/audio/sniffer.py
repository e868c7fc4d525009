"""Container sniffing from the first bytes of an audio file."""

import logging
from enum import Enum
from pathlib import Path
from typing import Union

from ..errors import TruncatedInput

logger = logging.getLogger(__name__)

HEADER_SIZE = 12


class AudioContainer(Enum):
    """How an input should be treated before transcription."""
    RECOGNIZED = "recognized"  # RIFF/WAVE, ready as-is
    CONVERTIBLE_CONTAINER = "convertible_container"  # Core Audio (caff)
    UNKNOWN = "unknown"  # anything else, conversion is best effort


def sniff(head: bytes) -> AudioContainer:
    """Classify a container from its first 12 bytes.

    This is a heuristic on magic numbers only; it decides whether
    normalization is attempted, it does not validate the stream.

    Raises:
        TruncatedInput: fewer than 12 bytes were supplied
    """
    if len(head) < HEADER_SIZE:
        raise TruncatedInput(len(head), HEADER_SIZE)

    if head[0:4] == b"RIFF" and head[8:12] == b"WAVE":
        return AudioContainer.RECOGNIZED
    if head[0:4] == b"caff":
        return AudioContainer.CONVERTIBLE_CONTAINER
    return AudioContainer.UNKNOWN


def read_header(path: Union[str, Path]) -> bytes:
    with open(path, "rb") as f:
        return f.read(HEADER_SIZE)


def sniff_file(path: Union[str, Path]) -> AudioContainer:
    """Classify the file at ``path`` by reading its header."""
    container = sniff(read_header(path))
    logger.debug(f"Sniffed {path}: {container.value}")
    return container
