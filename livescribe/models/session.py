"""Session and chunk models for live capture."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SessionState(Enum):
    """Lifecycle of a capture session."""
    IDLE = "idle"
    RECORDING = "recording"
    STOPPING = "stopping"


@dataclass(frozen=True)
class Chunk:
    """One fixed-length capture within a live session."""
    session_id: str
    index: int
    audio_data: bytes

    @property
    def file_name(self) -> str:
        return f"chunk_{self.index}.wav"


@dataclass
class SchedulerStatus:
    """Snapshot of a scheduler, suitable for display."""
    state: SessionState
    session_id: Optional[str]
    next_index: int
    outstanding_chunks: int
    peak_level: float = 0.0  # of the most recent chunk, 0.0-1.0
