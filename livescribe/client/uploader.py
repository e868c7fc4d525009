"""Worker pool that uploads captured chunks without blocking capture."""

import asyncio
import logging
import queue
import threading
import time
from typing import Callable, Optional

from ..models.metrics import STREAMING
from ..models.session import Chunk
from ..models.transcription import TranscriptionResponse
from .api_client import ApiResult, TranscriptionApiClient

logger = logging.getLogger(__name__)

ResultCallback = Callable[[Chunk, ApiResult[TranscriptionResponse]], None]


class ChunkUploader:
    """Manages a pool of worker threads that send chunks to the server.

    Each worker owns an asyncio loop so uploads for several chunks can be
    in flight at once. Results are handed to ``result_callback`` in
    completion order, on the worker thread.
    """

    def __init__(self,
                 api_client: TranscriptionApiClient,
                 result_callback: ResultCallback,
                 max_concurrent_uploads: int = 4,
                 name: str = "uploader"):
        self.api_client = api_client
        self.result_callback = result_callback
        self.max_concurrent_uploads = max_concurrent_uploads
        self.name = name

        self.task_queue: "queue.Queue[Optional[Chunk]]" = queue.Queue()
        self.worker_threads = []
        self._start_workers()

    def _start_workers(self) -> None:
        for i in range(self.max_concurrent_uploads):
            thread = threading.Thread(target=self._worker_loop, daemon=True)
            thread.name = f"worker_{self.name}_{i}"
            thread.start()
            self.worker_threads.append(thread)
        logger.info(f"Started {len(self.worker_threads)} {self.name} workers")

    def submit(self, chunk: Chunk) -> None:
        logger.debug(f"Queueing chunk {chunk.index} of session {chunk.session_id}")
        self.task_queue.put(chunk)

    def _worker_loop(self) -> None:
        thread_name = threading.current_thread().name
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

        try:
            while True:
                chunk = self.task_queue.get()
                if chunk is None:
                    logger.debug(f"Worker {thread_name} received sentinel, exiting.")
                    self.task_queue.task_done()
                    break

                try:
                    result = loop.run_until_complete(self._upload(chunk))
                except Exception as e:
                    logger.error(f"Upload of chunk {chunk.index} failed in {thread_name}: {e}", exc_info=True)
                    result = ApiResult.failure(str(e))

                try:
                    self.result_callback(chunk, result)
                except Exception as e:
                    logger.error(f"Result callback failed for chunk {chunk.index}: {e}", exc_info=True)
                finally:
                    self.task_queue.task_done()
        finally:
            loop.close()

    async def _upload(self, chunk: Chunk) -> ApiResult[TranscriptionResponse]:
        started = time.time()
        result = await self.api_client.transcribe_wav(
            chunk.audio_data,
            chunk.file_name,
            STREAMING,
            session_id=chunk.session_id,
            chunk_index=chunk.index,
        )
        logger.info(f"Chunk {chunk.index} round trip {time.time() - started:.2f}s (success={result.is_success})")
        return result

    def shutdown(self, timeout: float = 30.0) -> bool:
        """Wait for queued uploads, then stop the workers.

        Returns:
            True if the queue drained before ``timeout``
        """
        start_time = time.time()
        drained = False
        while time.time() - start_time < timeout:
            if self.task_queue.unfinished_tasks == 0:
                drained = True
                break
            time.sleep(0.05)
        if not drained:
            logger.warning(f"[{self.name}] Timeout waiting for uploads; "
                           f"{self.task_queue.unfinished_tasks} remain")

        for _ in self.worker_threads:
            self.task_queue.put(None)
        for thread in self.worker_threads:
            thread.join(2.0)
            if thread.is_alive():
                logger.warning(f"Worker thread {thread.name} did not terminate cleanly.")
        return drained
