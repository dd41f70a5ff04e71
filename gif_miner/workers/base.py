"""
Background job handle.

A job runs one callable on its own thread. Completion is observed through
``done`` (a threading.Event); the outcome lands in ``result`` or ``error``.
Failures are caught at the thread boundary and never re-raised there.
"""

import threading
import uuid
from typing import Any, Callable, Optional

from ..errors import ThreadJoinError
from ..logging import get_logger

logger = get_logger(__name__)


class BackgroundJob:
    """Supervised background thread."""

    def __init__(self, name: str, target: Callable[[], Any]):
        self.job_id = f"{name}-{uuid.uuid4().hex[:8]}"
        self._target = target
        self.done = threading.Event()
        self.result: Any = None
        self.error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._run, name=self.job_id, daemon=True)

    def start(self) -> "BackgroundJob":
        logger.info(f"[{self.job_id}] Starting")
        self._thread.start()
        return self

    def _run(self) -> None:
        try:
            self.result = self._target()
            logger.info(f"[{self.job_id}] Completed")
        except Exception as e:
            self.error = e
            logger.error(f"[{self.job_id}] Failed: {e}")
        finally:
            self.done.set()

    @property
    def succeeded(self) -> bool:
        return self.done.is_set() and self.error is None

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def join(self, timeout: Optional[float] = None) -> Any:
        """
        Wait for the job thread to exit.

        Raises:
            ThreadJoinError: Still running after ``timeout`` seconds
        """
        self._thread.join(timeout)
        if self._thread.is_alive():
            raise ThreadJoinError(f"[{self.job_id}] did not finish within {timeout}s")
        return self.result
