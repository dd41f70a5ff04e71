"""
Progress Reporting

Long-running jobs report through an injected ProgressSink. Delivery is
fire-and-forget: a failing sink is logged and never aborts the job.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from tqdm import tqdm

from .config import ProgressStage
from .logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    """One progress notification."""
    stage: ProgressStage
    message: str = ""
    current: Optional[int] = None
    total: Optional[int] = None
    details: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "stage": self.stage.value,
            "message": self.message,
            "current": self.current,
            "total": self.total,
            "details": self.details,
        }


class ProgressSink(ABC):
    """Receiver of progress events."""

    @abstractmethod
    def emit(self, event: ProgressEvent) -> None:
        """Deliver one event."""
        pass


class NullProgressSink(ProgressSink):
    """Discards every event."""

    def emit(self, event: ProgressEvent) -> None:
        pass


class LoggingProgressSink(ProgressSink):
    """Writes events to the gif_miner log."""

    def emit(self, event: ProgressEvent) -> None:
        counter = ""
        if event.current is not None and event.total is not None:
            counter = f" ({event.current}/{event.total})"
        suffix = f" - {event.details}" if event.details else ""
        if event.stage == ProgressStage.ERROR:
            logger.error(f"[{event.stage.value}] {event.message}{counter}{suffix}")
        else:
            logger.info(f"[{event.stage.value}] {event.message}{counter}{suffix}")


class CallbackProgressSink(ProgressSink):
    """Forwards events to a plain callable (e.g. a UI event bus)."""

    def __init__(self, callback: Callable[[ProgressEvent], None]):
        self._callback = callback

    def emit(self, event: ProgressEvent) -> None:
        self._callback(event)


class TqdmProgressSink(ProgressSink):
    """
    Renders counted events as tqdm bars, one bar per stage.

    Events without a counter are written above the bars.
    """

    def __init__(self, unit: str = "frame"):
        self.unit = unit
        self._bars: dict[ProgressStage, tqdm] = {}
        self._lock = threading.Lock()

    def emit(self, event: ProgressEvent) -> None:
        with self._lock:
            if event.current is None or event.total is None:
                tqdm.write(f"[{event.stage.value}] {event.message}")
                return

            bar = self._bars.get(event.stage)
            if bar is None:
                bar = tqdm(total=event.total, desc=event.stage.value, unit=self.unit, leave=False)
                self._bars[event.stage] = bar
            bar.total = event.total
            bar.n = min(event.current, event.total)
            bar.refresh()

    def close(self) -> None:
        with self._lock:
            for bar in self._bars.values():
                bar.close()
            self._bars.clear()


def emit_safely(sink: Optional[ProgressSink], event: ProgressEvent) -> None:
    """Emit an event; delivery failures are logged and swallowed."""
    if sink is None:
        return
    try:
        sink.emit(event)
    except Exception as e:
        logger.warning(f"Progress delivery failed for stage '{event.stage.value}': {e}")
