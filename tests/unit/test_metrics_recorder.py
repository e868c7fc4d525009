"""Unit tests for MetricsRecorder."""

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from livescribe.models.metrics import MetricRecord
from livescribe.services.metrics_recorder import MetricsRecorder


def make_record(name: str = "a.wav", **kwargs) -> MetricRecord:
    return MetricRecord(timestamp=datetime.now(timezone.utc), file_name=name, **kwargs)


@pytest.mark.unit
class TestMetricsRecorder:

    def test_record_and_snapshot(self, recorder):
        assert recorder.record(make_record("one.wav")) is True
        assert recorder.record(make_record("two.wav")) is True

        names = sorted(r.file_name for r in recorder.all())
        assert names == ["one.wav", "two.wav"]
        assert len(recorder.all()) == 2

    def test_snapshot_is_not_live(self, recorder):
        recorder.record(make_record())
        snapshot = recorder.all()
        recorder.record(make_record())
        assert len(snapshot) == 1

    def test_clear(self, recorder):
        recorder.record(make_record())
        assert recorder.clear() is True
        assert recorder.all() == ()

    def test_concurrent_appends_lose_nothing(self, recorder):
        threads = [
            threading.Thread(target=lambda i=i: [recorder.record(make_record(f"{i}_{j}.wav")) for j in range(50)])
            for i in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        names = {r.file_name for r in recorder.all()}
        assert len(names) == 400

    def test_mirror_failure_is_swallowed(self, tmp_path):
        recorder = MetricsRecorder(str(tmp_path / "metrics.jsonl"))
        with patch.object(recorder, "_append_line", side_effect=OSError("disk full")):
            assert recorder.record(make_record()) is False


@pytest.mark.unit
class TestMetricsLog:
    """JSON-lines mirror of the recorder."""

    def test_records_are_written_as_camel_case_lines(self, tmp_path):
        log_path = tmp_path / "logs" / "metrics.jsonl"
        recorder = MetricsRecorder(str(log_path))
        recorder.record(make_record("chunk_0.wav", session_id="s1", chunk_index=0, total_time_ms=42))

        lines = log_path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        data = json.loads(lines[0])
        assert data["fileName"] == "chunk_0.wav"
        assert data["sessionId"] == "s1"
        assert data["totalTimeMs"] == 42

    def test_existing_log_is_loaded_and_bad_lines_skipped(self, tmp_path):
        log_path = tmp_path / "metrics.jsonl"
        good = make_record("kept.wav", success=True)
        log_path.write_text(json.dumps(good.to_wire()) + "\n{not json\n\n", encoding="utf-8")

        recorder = MetricsRecorder(str(log_path))

        records = recorder.all()
        assert len(records) == 1
        assert records[0].file_name == "kept.wav"
        assert records[0].success is True

    def test_clear_truncates_log(self, tmp_path):
        log_path = tmp_path / "metrics.jsonl"
        recorder = MetricsRecorder(str(log_path))
        recorder.record(make_record())
        recorder.clear()

        assert log_path.read_text(encoding="utf-8") == ""
        assert MetricsRecorder(str(log_path)).all() == ()

    def test_clear_keeps_records_when_log_cannot_be_truncated(self, tmp_path):
        log_path = tmp_path / "metrics.jsonl"
        recorder = MetricsRecorder(str(log_path))
        recorder.record(make_record("kept.wav"))

        with patch.object(Path, "write_text", side_effect=OSError("read-only file system")):
            assert recorder.clear() is False

        assert [r.file_name for r in recorder.all()] == ["kept.wav"]
        assert len(MetricsRecorder(str(log_path)).all()) == 1
