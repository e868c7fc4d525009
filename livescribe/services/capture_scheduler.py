"""Timer-driven live capture: record fixed-length chunks and upload each one."""

import logging
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Optional

from pubsub import pub

from ..audio.capture import AudioDevice
from ..client.api_client import ApiResult, TranscriptionApiClient
from ..client.live_transcript import (
    Dispatcher,
    LiveTranscript,
    NO_SPEECH_LINE,
    chunk_error,
    chunk_text,
)
from ..client.uploader import ChunkUploader
from ..models.session import Chunk, SchedulerStatus, SessionState
from ..models.transcription import TranscriptionResponse

logger = logging.getLogger(__name__)

CHUNK_SECONDS = 2.0
DEFAULT_TOPIC = "capture.session"


class SessionCaptureScheduler:
    """Runs a live session as a sequence of 2-second chunks.

    A ticker thread fires immediately on ``start`` and then once per chunk
    period. Each tick records one chunk while holding the device, then hands
    it to the uploader and returns; uploads never hold up the next tick.
    Results are appended to ``transcript`` in the order they complete.
    At most one tick waits for the device; a period that finds one still
    waiting is skipped rather than queued.

    State changes are published on ``topic`` through pypubsub with a single
    ``key`` argument: "state", "session_id" or "transcript".
    """

    def __init__(self,
                 device: AudioDevice,
                 api_client: TranscriptionApiClient,
                 upload_workers: int = 4,
                 topic: str = DEFAULT_TOPIC,
                 chunk_seconds: float = CHUNK_SECONDS):
        self.device = device
        self.api_client = api_client
        self.topic = topic
        self.chunk_seconds = chunk_seconds

        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)
        self._state = SessionState.IDLE
        self._session_id: Optional[str] = None
        self._next_index = 0
        self._outstanding = 0
        self._tick_waiting = False
        self._peak_level = 0.0

        self._stop_event = threading.Event()
        self._timer_thread: Optional[threading.Thread] = None
        self._device_lock = threading.Lock()
        self._tick_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="capture_tick")

        self.dispatcher = Dispatcher()
        self.transcript = LiveTranscript(on_change=partial(self._publish, "transcript"))
        self.uploader = ChunkUploader(
            api_client,
            result_callback=self._on_chunk_result,
            max_concurrent_uploads=upload_workers,
            name="chunk_uploader",
        )

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def session_id(self) -> Optional[str]:
        with self._lock:
            return self._session_id

    @property
    def is_recording(self) -> bool:
        return self.state is SessionState.RECORDING

    def status(self) -> SchedulerStatus:
        with self._lock:
            return SchedulerStatus(
                state=self._state,
                session_id=self._session_id,
                next_index=self._next_index,
                outstanding_chunks=self._outstanding,
                peak_level=self._peak_level,
            )

    def start(self) -> bool:
        """Begin a new session.

        Returns:
            True if a session was started; False if one is already running
            or the microphone could not be opened.
        """
        with self._lock:
            if self._state is not SessionState.IDLE:
                logger.warning(f"start() ignored, scheduler is {self._state.value}")
                return False

        if not self.device.check_permission():
            logger.error("Microphone permission denied, session not started")
            return False

        with self._lock:
            if self._state is not SessionState.IDLE:
                return False
            self._session_id = str(uuid.uuid4())
            self._next_index = 0
            self._outstanding = 0
            self._tick_waiting = False
            self._peak_level = 0.0
            self._state = SessionState.RECORDING
            self._stop_event = threading.Event()
            session_id = self._session_id

        self.dispatcher.dispatch(self.transcript.clear)

        self._timer_thread = threading.Thread(
            target=self._run_timer, args=(self._stop_event,), daemon=True
        )
        self._timer_thread.name = "capture_timer"
        self._timer_thread.start()

        logger.info(f"✅ Session {session_id} started ({self.chunk_seconds}s chunks)")
        self._publish("state")
        self._publish("session_id")
        return True

    def stop(self) -> bool:
        """Stop scheduling ticks; chunks already submitted still complete.

        Returns:
            True if a recording session was stopping or stopped.
        """
        with self._lock:
            if self._state is not SessionState.RECORDING:
                logger.warning(f"stop() ignored, scheduler is {self._state.value}")
                return False
            self._state = SessionState.STOPPING
            self._stop_event.set()
            outstanding = self._outstanding
            finished = outstanding == 0
            if finished:
                self._finish_session()

        logger.info(f"Session stopping with {outstanding} chunk(s) outstanding")
        self._publish("state")
        if finished:
            self._publish("session_id")
        return True

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until the session has fully drained back to Idle."""
        with self._idle:
            return self._idle.wait_for(lambda: self._state is SessionState.IDLE, timeout)

    def shutdown(self, timeout: float = 30.0) -> None:
        if self.is_recording:
            self.stop()
        self.wait_until_idle(timeout)
        if self._timer_thread:
            self._timer_thread.join(1.0)
        self._tick_executor.shutdown(wait=True)
        self.uploader.shutdown(timeout)
        self.dispatcher.shutdown()
        logger.info("Capture scheduler shut down")

    def _run_timer(self, stop_event: threading.Event) -> None:
        next_tick = time.monotonic()
        while not stop_event.is_set():
            with self._lock:
                skip = self._tick_waiting
                self._tick_waiting = True
            if skip:
                logger.debug("Previous tick still waiting for the device, skipping this period")
            else:
                self._tick_executor.submit(self._on_tick)
            next_tick += self.chunk_seconds
            if stop_event.wait(max(0.0, next_tick - time.monotonic())):
                break
        logger.debug("Capture timer stopped")

    def _on_tick(self) -> None:
        with self._lock:
            if self._state is not SessionState.RECORDING:
                self._tick_waiting = False
                return
            session_id = self._session_id
            index = self._next_index
            self._next_index += 1
            self._outstanding += 1

        try:
            with self._device_lock:
                with self._lock:
                    self._tick_waiting = False
                recorder = self.device.create_recorder()
                audio_data = recorder.record(self.chunk_seconds)
                with self._lock:
                    self._peak_level = recorder.peak_level
        except Exception as e:
            logger.error(f"Capture failed for chunk {index}: {e}")
            self.dispatcher.dispatch(partial(self._complete_chunk, chunk_error(index, str(e))))
            return

        if not audio_data:
            self.dispatcher.dispatch(partial(self._complete_chunk, NO_SPEECH_LINE))
            return

        logger.debug(f"Captured chunk {index} ({len(audio_data)} bytes)")
        self.uploader.submit(Chunk(session_id=session_id, index=index, audio_data=audio_data))

    def _on_chunk_result(self, chunk: Chunk, result: ApiResult[TranscriptionResponse]) -> None:
        if result.is_success:
            line = chunk_text(result.data)
        else:
            line = chunk_error(chunk.index, result.error_message)
        self.dispatcher.dispatch(partial(self._complete_chunk, line))

    def _complete_chunk(self, line: Optional[str]) -> None:
        """Runs on the dispatcher thread."""
        try:
            if line is not None:
                self.transcript.append(line)
        finally:
            with self._lock:
                self._outstanding -= 1
                finished = self._state is SessionState.STOPPING and self._outstanding == 0
                if finished:
                    self._finish_session()

        if finished:
            self._publish("state")
            self._publish("session_id")

    def _finish_session(self) -> None:
        # Caller holds the lock.
        logger.info(f"Session {self._session_id} finished")
        self._state = SessionState.IDLE
        self._session_id = None
        self._idle.notify_all()

    def _publish(self, key: str) -> None:
        try:
            pub.sendMessage(self.topic, key=key)
        except Exception as e:
            logger.error(f"Listener for {self.topic} failed on '{key}': {e}", exc_info=True)
