"""
Unit tests for pipeline stage events.
"""

import logging

import pytest

from codesage.events import (
    OUTCOME_FAILED,
    OUTCOME_OK,
    OUTCOME_SKIPPED,
    LoggingEventSink,
    RecordingEventSink,
    StageEvent,
    stage,
)


class TestStage:
    """Unit tests for the stage context manager."""

    def test_successful_stage(self):
        sink = RecordingEventSink()

        with stage(sink, "fetch_files") as timer:
            timer.note(files=3)

        event = sink.events[0]
        assert event.stage == "fetch_files"
        assert event.outcome == OUTCOME_OK
        assert event.details == {"files": 3}
        assert event.error is None
        assert event.latency_ms >= 0

    def test_skipped_stage(self):
        sink = RecordingEventSink()

        with stage(sink, "review") as timer:
            timer.skip(reason="no patches")

        assert sink.events[0].outcome == OUTCOME_SKIPPED
        assert sink.events[0].details == {"reason": "no patches"}

    def test_failed_stage_reraises(self):
        sink = RecordingEventSink()

        with pytest.raises(RuntimeError):
            with stage(sink, "publish"):
                raise RuntimeError("boom")

        event = sink.events[0]
        assert event.outcome == OUTCOME_FAILED
        assert event.error == "RuntimeError: boom"

    def test_stages_recorded_in_order(self):
        sink = RecordingEventSink()

        for name in ("resolve_token", "fetch_files", "aggregate"):
            with stage(sink, name):
                pass

        assert sink.stages == ["resolve_token", "fetch_files", "aggregate"]


class TestLoggingEventSink:
    """Unit tests for LoggingEventSink."""

    def test_ok_event_logged_at_info(self, caplog):
        sink = LoggingEventSink()

        with caplog.at_level(logging.INFO, logger="codesage.events"):
            sink.emit(StageEvent(stage="review", outcome=OUTCOME_OK, latency_ms=12.34, details={"chars": 10}))

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert "stage=review outcome=ok latency_ms=12.3 chars=10" in record.getMessage()

    def test_failed_event_logged_at_error(self, caplog):
        sink = LoggingEventSink()

        with caplog.at_level(logging.INFO, logger="codesage.events"):
            sink.emit(StageEvent(stage="publish", outcome=OUTCOME_FAILED, latency_ms=1.0, error="UpstreamError: 403"))

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert "error=UpstreamError: 403" in record.getMessage()
