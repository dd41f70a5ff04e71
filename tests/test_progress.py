"""
Tests for progress sinks.
"""

from gif_miner.config import ProgressStage
from gif_miner.progress import (
    CallbackProgressSink,
    LoggingProgressSink,
    NullProgressSink,
    ProgressEvent,
    ProgressSink,
    emit_safely,
)


class ExplodingSink(ProgressSink):
    def emit(self, event):
        raise RuntimeError("transport down")


class TestProgressEvent:
    def test_to_dict(self):
        event = ProgressEvent(ProgressStage.PROCESSING, "Processing frame 5/10", current=5, total=10)
        assert event.to_dict() == {
            "stage": "processing",
            "message": "Processing frame 5/10",
            "current": 5,
            "total": 10,
            "details": None,
        }


class TestEmitSafely:
    """Test fire-and-forget delivery."""

    def test_failure_is_swallowed(self):
        emit_safely(ExplodingSink(), ProgressEvent(ProgressStage.COMPLETE))

    def test_none_sink(self):
        emit_safely(None, ProgressEvent(ProgressStage.COMPLETE))

    def test_callback(self):
        received = []
        emit_safely(CallbackProgressSink(received.append), ProgressEvent(ProgressStage.FULLFRAMES, current=1, total=2))
        assert received[0].current == 1

    def test_builtin_sinks(self):
        for sink in (NullProgressSink(), LoggingProgressSink()):
            sink.emit(ProgressEvent(ProgressStage.ERROR, "failed", details="diagnostic"))
