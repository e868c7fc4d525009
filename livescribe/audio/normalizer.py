"""Conversion of arbitrary audio containers to 16kHz mono WAV."""

import logging
import os
import shutil
import subprocess
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..errors import TruncatedInput, UnsupportedFormat
from .sniffer import AudioContainer, read_header, sniff

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedAudio:
    """Result of normalization.

    ``is_temporary`` is True when the normalizer produced a new file that
    the caller must delete once transcription completes.
    """
    path: Path
    is_temporary: bool


class AudioNormalizer:
    """Produces the canonical WAV container the engines accept.

    The caller's input file is never modified or deleted.
    """

    def __init__(self,
                 ffmpeg_path: str = "ffmpeg",
                 sample_rate: int = 16000,
                 temp_dir: Optional[str] = None):
        self.ffmpeg_path = ffmpeg_path
        self.sample_rate = sample_rate
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())

    def normalize(self, path: Path, container: AudioContainer) -> NormalizedAudio:
        """Return a path the engine can read directly.

        Raises:
            UnsupportedFormat: conversion failed and the original is not RIFF/WAVE
        """
        path = Path(path)
        if container is AudioContainer.RECOGNIZED:
            return NormalizedAudio(path=path, is_temporary=False)

        out_path = self.temp_dir / f"{path.stem}_norm_{uuid.uuid4().hex}.wav"
        try:
            self._transcode(path, out_path)
            logger.info(f"Converted {path.name} ({container.value}) to {out_path.name}")
            return NormalizedAudio(path=out_path, is_temporary=True)
        except (OSError, subprocess.CalledProcessError) as e:
            _safe_unlink(out_path)
            logger.warning(f"Transcoding {path.name} failed: {e}")
            return self._fallback(path, e)

    def _fallback(self, path: Path, cause: Exception) -> NormalizedAudio:
        """Accept the original as canonical only if its header says RIFF/WAVE."""
        header = read_header(path)
        try:
            recognized = sniff(header) is AudioContainer.RECOGNIZED
        except TruncatedInput:
            recognized = False
        if recognized:
            logger.info(f"Using {path.name} as-is after failed conversion")
            return NormalizedAudio(path=path, is_temporary=False)
        raise UnsupportedFormat(header, cause)

    def _transcode(self, in_path: Path, out_path: Path) -> None:
        ffmpeg = shutil.which(self.ffmpeg_path)
        if not ffmpeg:
            raise FileNotFoundError(f"Transcoder not available: {self.ffmpeg_path}")

        self.temp_dir.mkdir(parents=True, exist_ok=True)
        cmd = [
            ffmpeg,
            "-y",
            "-i",
            str(in_path),
            "-ac",
            "1",
            "-ar",
            str(self.sample_rate),
            "-c:a",
            "pcm_s16le",
            str(out_path),
        ]
        subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)


def _safe_unlink(path: Path) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove temp file {path}: {e}")
