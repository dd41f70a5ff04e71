"""
Batched Frame Extraction

Explodes a source sequence into per-frame artifacts in fixed-size batches on
a background thread. Output presence is the checkpoint: a batch whose
canonical artifacts already exist is skipped, so a restart after a crash or
cancel only does the remaining work.

States: IDLE -> RUNNING <-> PAUSED -> CANCELLING -> DONE, or FAILED.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..codec import FrameCodec
from ..config import (
    ARTIFACT_PREFIXES,
    EXTRACTION_STAGES,
    EXTRACTION_TERMINAL_STATES,
    ExtractionConfig,
    ExtractionKind,
    ExtractionState,
    ProgressStage,
)
from ..errors import InvalidParameterError, StateError, ThreadJoinError
from ..logging import get_logger
from ..progress import ProgressEvent, ProgressSink, emit_safely
from ..utils.io import batch_all_exist, canonicalize_artifacts, ensure_dir
from ..utils.validators import validate_extraction_config

logger = get_logger(__name__)


@dataclass
class ExtractionJob:
    """State of one extraction run."""
    source: Path
    output_dir: Path
    batch_size: int
    metadata_source: Optional[Path] = None  # defaults to source
    total_units: int = 0
    completed_units: int = 0
    paused: bool = False
    cancelled: bool = False
    executed_batches: list[tuple[int, int]] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def info_source(self) -> Path:
        return self.metadata_source or self.source


class BatchExtractionController:
    """
    One extraction kind (full frames or previews) with its own flags and
    worker handle.

    Example:
        >>> controller = BatchExtractionController(codec, ExtractionKind.PREVIEWS, sink)
        >>> controller.start(Path("anim_unoptimized.gif"), Path("work/_anim_previews"))
        >>> controller.pause()
        >>> controller.cancel()  # returns after the worker thread has exited
    """

    def __init__(
        self,
        codec: FrameCodec,
        kind: ExtractionKind = ExtractionKind.FULLFRAMES,
        sink: Optional[ProgressSink] = None,
        config: Optional[ExtractionConfig] = None,
    ):
        self.codec = codec
        self.kind = ExtractionKind(kind)
        self.sink = sink
        self.config = config or ExtractionConfig()

        is_valid, error = validate_extraction_config(self.config)
        if not is_valid:
            raise InvalidParameterError(error)

        self.prefix = ARTIFACT_PREFIXES[self.kind]
        self.stage: ProgressStage = EXTRACTION_STAGES[self.kind]

        self._paused = threading.Event()
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._state = ExtractionState.IDLE
        self.job: Optional[ExtractionJob] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> ExtractionState:
        with self._lock:
            return self._state

    def _set_state(self, state: ExtractionState) -> None:
        with self._lock:
            self._state = state

    @property
    def finished(self) -> bool:
        return self.state in EXTRACTION_TERMINAL_STATES

    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    def start(
        self,
        source: Path,
        output_dir: Path,
        metadata_source: Optional[Path] = None,
    ) -> ExtractionJob:
        """
        Start extraction on a background thread and return immediately.

        Raises:
            StateError: A previous worker of this kind is still alive
        """
        with self._lock:
            if self._thread is not None:
                if self._thread.is_alive():
                    raise StateError(f"{self.kind.value} extraction already running")
                # Previous run finished on its own; consume its handle
                self._thread.join()
                self._thread = None

            job = self._new_job(source, output_dir, metadata_source)
            self._thread = threading.Thread(
                target=self._worker,
                args=(job,),
                name=f"extract-{self.kind.value}",
                daemon=True,
            )
            self._thread.start()

        logger.info(f"[{self.kind.value}] Background extraction started: {source}")
        return job

    def pause(self) -> None:
        self._paused.set()
        with self._lock:
            if self.job is not None:
                self.job.paused = True
            if self._state == ExtractionState.RUNNING:
                self._state = ExtractionState.PAUSED
        logger.info(f"[{self.kind.value}] Extraction paused")

    def resume(self) -> None:
        self._paused.clear()
        with self._lock:
            if self.job is not None:
                self.job.paused = False
            if self._state == ExtractionState.PAUSED:
                self._state = ExtractionState.RUNNING
        logger.info(f"[{self.kind.value}] Extraction resumed")

    def cancel(self, timeout: Optional[float] = None) -> None:
        """
        Stop the worker and wait for its thread to exit.

        Raises:
            ThreadJoinError: Worker still alive after ``timeout`` seconds
        """
        self._cancelled.set()
        with self._lock:
            if self.job is not None:
                self.job.cancelled = True
            if self._state in (ExtractionState.RUNNING, ExtractionState.PAUSED):
                self._state = ExtractionState.CANCELLING
            thread = self._thread

        logger.info(f"[{self.kind.value}] Extraction cancelled, waiting for worker")
        if thread is None:
            return

        thread.join(timeout if timeout is not None else self.config.join_timeout)
        if thread.is_alive():
            raise ThreadJoinError(f"{self.kind.value} worker did not exit after cancel")

        with self._lock:
            if self._thread is thread:
                self._thread = None
            if self._state == ExtractionState.CANCELLING:
                self._state = ExtractionState.DONE
        logger.info(f"[{self.kind.value}] Worker stopped")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the current run ends. Returns False on timeout."""
        with self._lock:
            thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _new_job(self, source: Path, output_dir: Path, metadata_source: Optional[Path]) -> ExtractionJob:
        self._paused.clear()
        self._cancelled.clear()
        self.job = ExtractionJob(
            source=Path(source),
            output_dir=Path(output_dir),
            batch_size=self.config.batch_size,
            metadata_source=Path(metadata_source) if metadata_source else None,
        )
        self._state = ExtractionState.IDLE
        return self.job

    def _worker(self, job: ExtractionJob) -> None:
        try:
            self._execute(job)
        except Exception as e:
            job.error = str(e)
            self._set_state(ExtractionState.FAILED)
            logger.error(f"[{self.kind.value}] Extraction failed: {e}")
            emit_safely(self.sink, ProgressEvent(
                ProgressStage.ERROR,
                message=f"{self.kind.value} extraction failed: {e}",
                current=job.completed_units,
                total=job.total_units,
            ))

    def run(
        self,
        source: Path,
        output_dir: Path,
        metadata_source: Optional[Path] = None,
    ) -> ExtractionJob:
        """
        Run extraction on the calling thread. Failures propagate.

        Raises:
            StateError: A background worker of this kind is still alive
        """
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                raise StateError(f"{self.kind.value} extraction already running")
            job = self._new_job(source, output_dir, metadata_source)
        try:
            return self._execute(job)
        except Exception as e:
            job.error = str(e)
            self._set_state(ExtractionState.FAILED)
            raise

    def _execute(self, job: ExtractionJob) -> ExtractionJob:
        self._set_state(ExtractionState.RUNNING)

        for precursor in {job.source, job.info_source}:
            if not precursor.exists():
                raise StateError(f"Required artifact missing: {precursor}")

        total = self.codec.metadata(job.info_source).frame_count
        if total == 0:
            raise StateError(f"Could not determine frame count of {job.info_source}")
        job.total_units = total

        ensure_dir(job.output_dir)

        if batch_all_exist(job.output_dir, self.prefix, 0, total - 1):
            logger.info(f"[{self.kind.value}] All {total} artifacts present, nothing to extract")
            return self._finish(job)

        current = 0
        while current < total:
            if not self._wait_while_paused():
                logger.info(f"[{self.kind.value}] Cancelled at {current}/{total}")
                self._set_state(ExtractionState.DONE)
                return job

            end = min(current + job.batch_size - 1, total - 1)

            if batch_all_exist(job.output_dir, self.prefix, current, end):
                current = end + 1
                job.completed_units = current
                continue

            self._extract_batch(job, current, end)
            current = end + 1
            job.completed_units = current

            emit_safely(self.sink, ProgressEvent(self.stage, current=current, total=total))

            # Throttle between batches
            self._cancelled.wait(self.config.throttle_interval)

        return self._finish(job)

    def _wait_while_paused(self) -> bool:
        """False when cancelled before or during the pause wait."""
        if self._cancelled.is_set():
            return False
        while self._paused.is_set():
            with self._lock:
                if self._state == ExtractionState.RUNNING:
                    self._state = ExtractionState.PAUSED
            if self._cancelled.wait(self.config.poll_interval):
                return False
        with self._lock:
            if self._state == ExtractionState.PAUSED:
                self._state = ExtractionState.RUNNING
        return not self._cancelled.is_set()

    def _extract_batch(self, job: ExtractionJob, start: int, end: int) -> None:
        resize = None
        if self.kind == ExtractionKind.PREVIEWS:
            resize = (self.config.max_preview, self.config.max_preview)

        self.codec.explode(
            job.source,
            job.output_dir / self.prefix,
            index_range=(start, end),
            resize=resize,
            resize_method=self.config.resize_method,
        )
        job.executed_batches.append((start, end))

        missing = canonicalize_artifacts(job.output_dir, self.prefix, start, end)
        if missing:
            logger.warning(f"[{self.kind.value}] Batch {start}-{end}: {len(missing)} file(s) not produced")

    def _finish(self, job: ExtractionJob) -> ExtractionJob:
        job.completed_units = job.total_units
        emit_safely(self.sink, ProgressEvent(self.stage, current=job.total_units, total=job.total_units))
        self._set_state(ExtractionState.DONE)
        logger.info(f"[{self.kind.value}] Extraction complete ({job.total_units} frames)")
        return job
