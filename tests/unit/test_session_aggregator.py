"""Unit tests for session aggregation and metrics sorting."""

from datetime import datetime, timedelta, timezone

import pytest

from livescribe.models.metrics import FILE_UPLOAD, STREAMING, MetricRecord
from livescribe.services.session_aggregator import SessionAggregator, aggregate, sort_summaries

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def chunk_record(session_id, index, total_ms=100, success=True, error=None, duration=2.0, text=""):
    return MetricRecord(
        timestamp=BASE_TIME + timedelta(seconds=2 * index),
        model_name="whisper-base",
        file_name=f"chunk_{index}.wav",
        transcription_type=STREAMING,
        session_id=session_id,
        chunk_index=index,
        file_size_bytes=64000,
        audio_duration_seconds=duration,
        preprocessing_time_ms=10,
        transcription_time_ms=total_ms - 10,
        total_time_ms=total_ms,
        success=success,
        error_message=error,
        transcribed_text=text,
    )


def upload_record(name, total_ms, minutes=0):
    return MetricRecord(
        timestamp=BASE_TIME + timedelta(minutes=minutes),
        model_name="whisper-base",
        file_name=name,
        transcription_type=FILE_UPLOAD,
        total_time_ms=total_ms,
        success=True,
    )


@pytest.mark.unit
class TestAggregate:

    def test_session_totals(self):
        records = [chunk_record("s1", i, total_ms=t) for i, t in enumerate([120, 340, 95])]
        (summary,) = aggregate(records)

        assert summary.session_id == "s1"
        assert summary.total_time_ms == 555
        assert summary.timestamp == BASE_TIME
        assert summary.file_size_bytes == 3 * 64000
        assert summary.preprocessing_time_ms == 30
        assert summary.transcription_time_ms == 525
        assert summary.audio_duration_seconds == pytest.approx(6.0)
        assert summary.model_name == "whisper-base"
        assert summary.transcription_type == STREAMING

    def test_timestamp_is_minimum_regardless_of_order(self):
        records = [chunk_record("s1", 4), chunk_record("s1", 1), chunk_record("s1", 7)]
        (summary,) = aggregate(records)
        assert summary.timestamp == BASE_TIME + timedelta(seconds=2)

    def test_success_is_and_of_members(self):
        records = [
            chunk_record("s1", 0),
            chunk_record("s1", 1),
            chunk_record("s1", 2, success=False, error="Failed to transcribe"),
        ]
        (summary,) = aggregate(records)
        assert summary.success is False
        assert summary.error_message == "Failed to transcribe"

    def test_error_messages_joined(self):
        records = [
            chunk_record("s1", 0, success=False, error="first"),
            chunk_record("s1", 1),
            chunk_record("s1", 2, success=False, error="second"),
        ]
        (summary,) = aggregate(records)
        assert summary.error_message == "first; second"

    def test_all_success_has_no_error(self):
        (summary,) = aggregate([chunk_record("s1", 0), chunk_record("s1", 1)])
        assert summary.success is True
        assert summary.error_message is None

    def test_missing_durations_count_as_zero(self):
        records = [chunk_record("s1", 0, duration=None), chunk_record("s1", 1, duration=2.5)]
        (summary,) = aggregate(records)
        assert summary.audio_duration_seconds == pytest.approx(2.5)

    def test_text_follows_chunk_order(self):
        records = [
            chunk_record("s1", 2, text="three"),
            chunk_record("s1", 0, text="one"),
            chunk_record("s1", 1, text="two"),
        ]
        (summary,) = aggregate(records)
        assert summary.transcribed_text == "one two three"

    def test_single_record_session_is_unchanged(self):
        record = chunk_record("s1", 0)
        assert aggregate([record]) == [record]

    def test_records_without_session_pass_through(self):
        uploads = [upload_record("a.wav", 10), upload_record("b.wav", 20)]
        empty_session = upload_record("c.wav", 30).model_copy(update={"session_id": ""})
        summaries = aggregate(uploads + [empty_session])

        assert len(summaries) == 3
        assert summaries[0] is uploads[0]
        assert summaries[1] is uploads[1]

    def test_mixed_sessions(self):
        records = [
            chunk_record("s1", 0), upload_record("a.wav", 10),
            chunk_record("s2", 0), chunk_record("s1", 1), chunk_record("s2", 1),
        ]
        summaries = aggregate(records)

        assert len(summaries) == 3
        by_session = {s.session_id: s for s in summaries if s.session_id}
        assert by_session["s1"].total_time_ms == 200
        assert by_session["s2"].total_time_ms == 200

    def test_inputs_are_not_modified(self):
        records = [chunk_record("s1", 0, total_ms=50), chunk_record("s1", 1, total_ms=70)]
        aggregate(records)
        assert [r.total_time_ms for r in records] == [50, 70]


@pytest.mark.unit
class TestSortSummaries:

    def test_sort_ascending_and_descending(self):
        summaries = [upload_record("a", 30), upload_record("b", 10), upload_record("c", 20)]

        assert [s.file_name for s in sort_summaries(summaries, "totalTimeMs")] == ["b", "c", "a"]
        assert [s.file_name for s in sort_summaries(summaries, "totalTimeMs", False)] == ["a", "c", "b"]

    def test_sort_is_stable(self):
        summaries = [upload_record("a", 10), upload_record("b", 10), upload_record("c", 5)]
        assert [s.file_name for s in sort_summaries(summaries, "totalTimeMs")] == ["c", "a", "b"]

    def test_unknown_column_returns_input_order(self):
        summaries = [upload_record("a", 30), upload_record("b", 10)]
        assert sort_summaries(summaries, "fileName") == summaries

    def test_duration_none_sorts_as_zero(self):
        first = upload_record("none", 10).model_copy(update={"audio_duration_seconds": None})
        second = upload_record("one", 10).model_copy(update={"audio_duration_seconds": 1.0})
        assert [s.file_name for s in sort_summaries([second, first], "audioDurationSeconds")] == ["none", "one"]


@pytest.mark.unit
class TestSessionAggregatorSort:

    def test_same_column_toggles_direction(self):
        aggregator = SessionAggregator()
        summaries = [upload_record("a", 30), upload_record("b", 10), upload_record("c", 20)]

        first = aggregator.sort(summaries, "totalTimeMs", True)
        second = aggregator.sort(first, "totalTimeMs", True)

        assert [s.total_time_ms for s in first] == [10, 20, 30]
        assert [s.total_time_ms for s in second] == [30, 20, 10]
        assert aggregator.ascending is False

    def test_new_column_resets_direction(self):
        aggregator = SessionAggregator()
        summaries = [upload_record("a", 30, minutes=2), upload_record("b", 10, minutes=1)]

        aggregator.sort(summaries, "totalTimeMs")
        aggregator.sort(summaries, "totalTimeMs")
        result = aggregator.sort(summaries, "timestamp")

        assert aggregator.sort_column == "timestamp"
        assert aggregator.ascending is True
        assert [s.file_name for s in result] == ["b", "a"]

    def test_unknown_column_keeps_state(self):
        aggregator = SessionAggregator()
        summaries = [upload_record("a", 30), upload_record("b", 10)]
        aggregator.sort(summaries, "totalTimeMs")

        result = aggregator.sort(summaries, "bogus")

        assert result == summaries
        assert aggregator.sort_column == "totalTimeMs"
        assert aggregator.ascending is True
