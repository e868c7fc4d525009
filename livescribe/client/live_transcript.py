"""Live transcript buffer and the single-writer dispatcher that feeds it."""

import logging
import queue
import re
import threading
from typing import Callable, List, Optional

from ..models.transcription import TranscriptionResponse

logger = logging.getLogger(__name__)

NO_SPEECH_LINE = "[No speech detected]"
BLANK_AUDIO_MARKERS = {"[BLANK_AUDIO]", "[NO_SPEECH_DETECTED]"}

_TIMESTAMP_PREFIX = re.compile(
    r"^\s*\d{2,}:\d{2}:\d{2}(?:\.\d+)?->\d{2,}:\d{2}:\d{2}(?:\.\d+)?:\s?"
)


def strip_timestamp(result_line: str) -> str:
    """Drop a leading ``HH:MM:SS[.ffffff]->HH:MM:SS[.ffffff]: `` prefix."""
    return _TIMESTAMP_PREFIX.sub("", result_line, count=1)


def chunk_text(response: TranscriptionResponse) -> Optional[str]:
    """Text to show for a successful chunk, or None if it should be suppressed.

    Blank-audio markers are dropped; a chunk with no results at all
    becomes the no-speech line.
    """
    if not response.results:
        return NO_SPEECH_LINE

    texts = []
    for line in response.results:
        text = strip_timestamp(line).strip()
        if text and text not in BLANK_AUDIO_MARKERS:
            texts.append(text)
    if not texts:
        return None
    return " ".join(texts)


def chunk_error(index: int, message: str) -> str:
    return f"Error in chunk {index}: {message}"


class Dispatcher:
    """Runs submitted callables one at a time on a dedicated thread.

    All mutations of the live transcript go through here so concurrent
    chunk completions never interleave.
    """

    def __init__(self, name: str = "TranscriptDispatcher"):
        self._queue: "queue.Queue[Optional[Callable[[], None]]]" = queue.Queue()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.name = name
        self._thread.start()

    def dispatch(self, action: Callable[[], None]) -> None:
        self._queue.put(action)

    def _run(self) -> None:
        while True:
            action = self._queue.get()
            try:
                if action is None:
                    break
                action()
            except Exception as e:
                logger.error(f"Dispatched action failed: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    def wait_until_idle(self) -> None:
        """Block until every action dispatched so far has run."""
        self._queue.join()

    def shutdown(self, timeout: float = 2.0) -> None:
        self._queue.put(None)
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Dispatcher thread did not stop cleanly")


class LiveTranscript:
    """Accumulates transcript lines in completion order.

    Only mutate from the dispatcher thread; ``text`` and ``lines`` may be
    read from anywhere.
    """

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        self._lines: List[str] = []
        self._lock = threading.Lock()
        self._on_change = on_change

    def append(self, line: str) -> None:
        with self._lock:
            self._lines.append(line)
        logger.debug(f"Transcript += {line!r}")
        self._notify()

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()
        self._notify()

    def _notify(self) -> None:
        if self._on_change:
            self._on_change()

    @property
    def lines(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    @property
    def text(self) -> str:
        with self._lock:
            return "\n".join(self._lines)
