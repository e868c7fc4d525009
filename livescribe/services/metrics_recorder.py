"""Thread-safe, append-only store of per-request transcription metrics."""

import json
import logging
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import ValidationError

from ..models.metrics import MetricRecord

logger = logging.getLogger(__name__)


class MetricsRecorder:
    """Collects one MetricRecord per transcription attempt.

    Recording is best-effort: ``record`` reports failure through its
    return value and never raises, so metrics can't fail a transcription.
    When ``log_path`` is set every record is mirrored to a JSON-lines file.
    """

    def __init__(self, log_path: Optional[str] = None):
        self.log_path = Path(log_path) if log_path else None
        self._records: List[MetricRecord] = []
        self._lock = threading.Lock()

        if self.log_path:
            self._load_log()
        logger.info(f"MetricsRecorder initialized (log: {self.log_path or 'memory only'})")

    def _load_log(self) -> None:
        if not self.log_path.exists():
            return
        loaded = 0
        with open(self.log_path, 'r', encoding='utf-8') as f:
            for line_number, line in enumerate(f, 1):
                if not line.strip():
                    continue
                try:
                    self._records.append(MetricRecord.model_validate_json(line))
                    loaded += 1
                except ValidationError as e:
                    logger.warning(f"Skipping malformed metrics line {line_number}: {e}")
        logger.info(f"Loaded {loaded} metric records from {self.log_path}")

    def record(self, metric: MetricRecord) -> bool:
        """Append a record. Returns False if it could not be stored."""
        try:
            with self._lock:
                self._records.append(metric)
                if self.log_path:
                    self._append_line(metric)
            logger.debug(f"Recorded metric for {metric.file_name} (success={metric.success})")
            return True
        except Exception as e:
            logger.error(f"Failed to record metric for {metric.file_name}: {e}")
            return False

    def _append_line(self, metric: MetricRecord) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_path, 'a', encoding='utf-8') as f:
            f.write(json.dumps(metric.to_wire(), ensure_ascii=False) + "\n")

    def all(self) -> Tuple[MetricRecord, ...]:
        """Snapshot of every record; order is not meaningful to callers."""
        with self._lock:
            return tuple(self._records)

    def clear(self) -> bool:
        """Empty the log. Returns True on success."""
        try:
            with self._lock:
                if self.log_path and self.log_path.exists():
                    self.log_path.write_text("", encoding='utf-8')
                count = len(self._records)
                self._records.clear()
            logger.info(f"Cleared {count} metric records")
            return True
        except OSError as e:
            logger.error(f"Failed to clear metrics log: {e}")
            return False
