"""Transcription-related data models."""

from dataclasses import dataclass
from typing import List

from pydantic import BaseModel, Field


def format_offset(seconds: float) -> str:
    """Render an offset as ``HH:MM:SS`` with a ``.ffffff`` suffix when fractional."""
    micros = int(round(max(seconds, 0.0) * 1_000_000))
    whole, fraction = divmod(micros, 1_000_000)
    hours, remainder = divmod(whole, 3600)
    minutes, secs = divmod(remainder, 60)
    text = f"{hours:02d}:{minutes:02d}:{secs:02d}"
    if fraction:
        text += f".{fraction:06d}"
    return text


@dataclass(frozen=True)
class Segment:
    """One timed piece of text produced by a transcription engine."""
    start: float  # seconds from the start of the audio
    end: float
    text: str

    def render(self) -> str:
        return f"{format_offset(self.start)}->{format_offset(self.end)}: {self.text}"


class TranscriptionResponse(BaseModel):
    """Wire shape of every transcription endpoint."""
    results: List[str] = Field(default_factory=list)

    @classmethod
    def from_segments(cls, segments: List[Segment]) -> "TranscriptionResponse":
        return cls(results=[segment.render() for segment in segments])
