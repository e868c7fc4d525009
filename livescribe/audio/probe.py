"""Best-effort audio duration probing."""

import logging
from pathlib import Path
from typing import Optional

from scipy.io import wavfile

logger = logging.getLogger(__name__)


def probe_duration(path: Path) -> Optional[float]:
    """Return the duration of a WAV file in seconds, or None if unknown."""
    try:
        sample_rate, data = wavfile.read(str(path), mmap=True)
    except (ValueError, OSError) as e:
        logger.debug(f"Could not determine duration of {path}: {e}")
        return None
    if not sample_rate:
        return None
    return len(data) / float(sample_rate)
