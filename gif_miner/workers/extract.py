"""
Extraction supervisor - the full-frame and preview controllers side by side.

Each controller owns its own flags; the supervisor's pause/resume/cancel act
on both explicitly. ``prepare`` builds the full-palette and unoptimized
intermediates that extraction reads from, so optimized sources explode into
whole logical frames rather than cropped difference rectangles.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..codec import FrameCodec
from ..config import (
    RESTORED_PALETTE_COLORS,
    TEMP_COLOR_RESTORED,
    TEMP_UNOPTIMIZED,
    ExtractionConfig,
    ExtractionKind,
    ProgressStage,
    get_extraction_config,
)
from ..errors import StateError, ThreadJoinError
from ..logging import get_logger
from ..modules.batch_extractor import BatchExtractionController, ExtractionJob
from ..progress import ProgressEvent, ProgressSink, emit_safely
from ..utils.io import ensure_dir, extraction_dir, is_nonempty_file, temp_artifact_path

logger = get_logger(__name__)


@dataclass
class PreparedSource:
    """Intermediates derived from one source sequence."""
    source: Path
    color_restored: Path  # frame count is read from here
    unoptimized: Path     # frames are exploded from here


class ExtractionSupervisor:
    """
    Owns one BatchExtractionController per ExtractionKind.

    Artifacts for ``anim.gif`` under ``work_dir`` land in
    ``_anim_fullframes/frame.<i>`` and ``_anim_previews/preview.<i>``;
    intermediates in ``_anim_temp_color_restored.gif`` and
    ``_anim_temp_unoptimized.gif``.
    """

    def __init__(
        self,
        codec: FrameCodec,
        sink: Optional[ProgressSink] = None,
        config: Optional[ExtractionConfig] = None,
    ):
        self.codec = codec
        self.sink = sink
        self.config = config or get_extraction_config()
        self.controllers: dict[ExtractionKind, BatchExtractionController] = {
            kind: BatchExtractionController(codec, kind, sink=sink, config=self.config)
            for kind in ExtractionKind
        }

    @property
    def fullframes(self) -> BatchExtractionController:
        return self.controllers[ExtractionKind.FULLFRAMES]

    @property
    def previews(self) -> BatchExtractionController:
        return self.controllers[ExtractionKind.PREVIEWS]

    @staticmethod
    def output_dir(work_dir: Path, source: Path, kind: ExtractionKind) -> Path:
        return extraction_dir(work_dir, source, ExtractionKind(kind).value)

    def prepare(self, source: Path, work_dir: Path) -> PreparedSource:
        """
        Write the color-restored and unoptimized intermediates of ``source``.

        Non-empty intermediates from an earlier run are reused.

        Raises:
            StateError: Source missing
            CodecError: gifsicle failed
        """
        source = Path(source)
        if not source.exists():
            raise StateError(f"Required artifact missing: {source}")
        ensure_dir(work_dir)

        prepared = PreparedSource(
            source=source,
            color_restored=temp_artifact_path(work_dir, source, TEMP_COLOR_RESTORED),
            unoptimized=temp_artifact_path(work_dir, source, TEMP_UNOPTIMIZED),
        )

        if is_nonempty_file(prepared.color_restored):
            logger.debug(f"Reusing {prepared.color_restored.name}")
        else:
            emit_safely(self.sink, ProgressEvent(ProgressStage.PREPARING, "Restoring colors"))
            self.codec.quantize(source, RESTORED_PALETTE_COLORS, prepared.color_restored)

        if is_nonempty_file(prepared.unoptimized):
            logger.debug(f"Reusing {prepared.unoptimized.name}")
        else:
            emit_safely(self.sink, ProgressEvent(ProgressStage.PREPARING, "Unoptimizing"))
            self.codec.copy_frames(prepared.color_restored, prepared.unoptimized, unoptimize=True)

        logger.info(f"Prepared {source.name} for extraction")
        return prepared

    def start(
        self,
        kind: ExtractionKind,
        source: Path,
        work_dir: Path,
        metadata_source: Optional[Path] = None,
        prepared: Optional[PreparedSource] = None,
    ) -> ExtractionJob:
        """
        Start one kind; returns immediately.

        With ``prepared``, frames are exploded from its unoptimized copy and
        counted on its color-restored copy; output folders keep the name of
        ``source``.
        """
        output_dir = self.output_dir(work_dir, source, kind)
        controller = self.controllers[ExtractionKind(kind)]
        if prepared is not None:
            return controller.start(prepared.unoptimized, output_dir, prepared.color_restored)
        return controller.start(source, output_dir, metadata_source)

    def start_all(
        self,
        source: Path,
        work_dir: Path,
        metadata_source: Optional[Path] = None,
        prepared: Optional[PreparedSource] = None,
    ) -> dict[ExtractionKind, ExtractionJob]:
        return {
            kind: self.start(kind, source, work_dir, metadata_source, prepared)
            for kind in ExtractionKind
        }

    def pause(self) -> None:
        for controller in self.controllers.values():
            controller.pause()

    def resume(self) -> None:
        for controller in self.controllers.values():
            controller.resume()

    def cancel(self, timeout: Optional[float] = None) -> list[ExtractionKind]:
        """
        Cancel both controllers and join their workers.

        A worker that fails to join is logged and reported, never raised.

        Returns:
            Kinds whose worker did not exit in time
        """
        stuck = []
        for kind, controller in self.controllers.items():
            try:
                controller.cancel(timeout)
            except ThreadJoinError as e:
                logger.error(f"[{kind.value}] {e}")
                stuck.append(kind)
        return stuck

    def wait(self, timeout: Optional[float] = None) -> bool:
        return all(controller.wait(timeout) for controller in self.controllers.values())
