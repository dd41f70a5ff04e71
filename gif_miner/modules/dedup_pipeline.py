"""
Deduplication Pipeline

Removes visually redundant consecutive frames from an animated sequence.

Pipeline:
1. Read per-frame delays from the source metadata
2. Best-effort palette pre-pass, then explode into single-frame artifacts
3. Decode and fingerprint each frame (pixels are dropped right after)
4. Merge consecutive similar frames, summing their delays
5. Rebuild from group representatives by remux or by re-encode
"""

import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from PIL import Image

from ..codec import FrameCodec, SequenceMetadata
from ..config import (
    DEFAULT_FRAME_DELAY,
    DEFAULT_REENCODE_FPS,
    MAX_PALETTE_COLORS,
    PROGRESS_EVERY_N_FRAMES,
    DedupConfig,
    ProgressStage,
    RebuildStrategy,
)
from ..errors import ArtifactIOError, CodecError, GifMinerError, InvalidParameterError
from ..logging import get_logger
from ..progress import ProgressEvent, ProgressSink, emit_safely
from ..utils.io import ensure_dir, file_size_kb, list_artifacts
from ..utils.validators import validate_dedup_options
from .hasher import compute_fingerprint
from .merger import MergeGroup, merge_frames, similarity_to_threshold

logger = get_logger(__name__)

FRAME_PREFIX = "frame"


@dataclass
class DedupResult:
    """Result of a deduplication run."""
    output: Path
    total_frames: int
    groups: list[MergeGroup] = field(default_factory=list)
    strategy: RebuildStrategy = RebuildStrategy.REENCODE
    original_size_kb: float = 0.0
    new_size_kb: float = 0.0

    @property
    def kept_frames(self) -> int:
        return len(self.groups)

    @property
    def duplicates_removed(self) -> int:
        return self.total_frames - self.kept_frames

    @property
    def compression_pct(self) -> int:
        if self.original_size_kb <= 0:
            return 0
        return int((1.0 - self.new_size_kb / self.original_size_kb) * 100)


def frame_delay(delays: list[float], index: int, frame_count: int) -> float:
    """
    Delay for frame ``index``: its own when the counts line up, else the
    first reported delay, else 0.1 s.
    """
    if len(delays) == frame_count:
        return delays[index]
    if delays:
        return delays[0]
    return DEFAULT_FRAME_DELAY


class DedupPipeline:
    """
    Perceptual deduplication of one sequence.

    Example:
        >>> pipeline = DedupPipeline(GifsicleCodec(), sink=LoggingProgressSink())
        >>> result = pipeline.run(Path("in.gif"), Path("out.gif"), DedupConfig(similarity_threshold=90))
        >>> result.kept_frames, result.total_frames
        (37, 120)
    """

    def __init__(
        self,
        codec: FrameCodec,
        sink: Optional[ProgressSink] = None,
        config: Optional[DedupConfig] = None,
    ):
        self.codec = codec
        self.sink = sink
        self.config = config or DedupConfig()

    def _emit(self, stage: ProgressStage, message: str, current: Optional[int] = None,
              total: Optional[int] = None, details: Optional[str] = None) -> None:
        emit_safely(self.sink, ProgressEvent(stage, message, current, total, details))

    def validate(self, options: DedupConfig) -> None:
        is_valid, error = validate_dedup_options(options)
        if not is_valid:
            raise InvalidParameterError(error)

    def run(self, source: Path, output: Path, options: Optional[DedupConfig] = None) -> DedupResult:
        """
        Deduplicate ``source`` into ``output``.

        Emits ``starting``, ``extracting``, ``processing``, ``deduplicating``,
        ``rebuilding`` and finally ``complete`` or ``error``.

        Raises:
            InvalidParameterError: Options out of range (nothing is emitted)
            CodecError: Any codec invocation failed
            ArtifactIOError: Source missing or artifacts unreadable
        """
        options = options or self.config
        self.validate(options)

        source = Path(source)
        output = Path(output)

        self._emit(ProgressStage.STARTING, f"Processing: {source}")

        try:
            if not source.exists():
                raise ArtifactIOError(f"Source not found: {source}")

            temp_root = ensure_dir(options.work_dir) if options.work_dir else None
            try:
                work_dir = Path(tempfile.mkdtemp(prefix="gif_dedup_", dir=temp_root))
            except OSError as e:
                raise ArtifactIOError(f"Cannot create work directory: {e}") from e

            try:
                result = self._run(source, output, options, work_dir)
            finally:
                shutil.rmtree(work_dir, ignore_errors=True)

            result.original_size_kb = file_size_kb(source)
            result.new_size_kb = file_size_kb(output)
        except GifMinerError as e:
            logger.error(f"Deduplication failed for {source}: {e}")
            self._emit(ProgressStage.ERROR, f"Deduplication failed: {e}")
            raise

        self._emit(
            ProgressStage.COMPLETE,
            f"Created: {output}",
            details=(
                f"Original size: {result.original_size_kb:.1f}KB, "
                f"new size: {result.new_size_kb:.1f}KB, "
                f"compression: {result.compression_pct}%"
            ),
        )
        logger.info(
            f"Dedup {source.name}: {result.total_frames} -> {result.kept_frames} frames "
            f"({result.strategy.value})"
        )
        return result

    def _run(self, source: Path, output: Path, options: DedupConfig, work_dir: Path) -> DedupResult:
        colors = min(options.target_colors, MAX_PALETTE_COLORS)

        self._emit(
            ProgressStage.EXTRACTING,
            "Extracting frames...",
            details=f"Preparing palette ({colors} colors)...",
        )
        meta = self.codec.metadata(source)
        prepared = self._prepare_palette(source, colors, work_dir)

        frames_dir = ensure_dir(work_dir / "frames")
        self.codec.explode(prepared, frames_dir / FRAME_PREFIX, unoptimize=True)
        artifacts = list_artifacts(frames_dir, FRAME_PREFIX)
        if not artifacts:
            raise CodecError("Explode produced no frames", diagnostic=str(frames_dir))

        total = len(artifacts)
        logger.debug(f"Found {total} frame artifacts, {len(meta.delays)} delays reported")
        self._emit(ProgressStage.EXTRACTING, f"Total frames: {total}", current=total, total=total)

        threshold = similarity_to_threshold(options.similarity_threshold)
        self._emit(ProgressStage.DEDUPLICATING, f"Deduplicating (Hamming threshold: {threshold})...")

        entries = self._fingerprint_frames(artifacts, meta)
        groups = merge_frames(entries, threshold, on_compare=self._on_compare)

        removed = total - len(groups)
        self._emit(
            ProgressStage.DEDUPLICATING,
            f"Kept frames: {len(groups)} (removed {removed})",
            current=len(groups),
            total=total,
        )

        strategy = RebuildStrategy.REMUX if options.use_indexed_palette else RebuildStrategy.REENCODE
        total_time = sum(g.total_delay for g in groups)
        self._emit(
            ProgressStage.REBUILDING,
            f"Rebuilding (quality: {options.quality}, total duration: {total_time:.2f}s)...",
        )

        if strategy == RebuildStrategy.REMUX:
            self._rebuild_remux(artifacts, groups, output, colors, options.optimize_level)
        else:
            self._rebuild_reencode(artifacts, groups, meta, output, options.quality, colors, work_dir)

        return DedupResult(output=output, total_frames=total, groups=groups, strategy=strategy)

    def _prepare_palette(self, source: Path, colors: int, work_dir: Path) -> Path:
        """Quantized copy of ``source``, or ``source`` itself when quantizing fails."""
        prepared = work_dir / "optimized.gif"
        try:
            return self.codec.quantize(source, colors, prepared)
        except CodecError as e:
            logger.warning(f"Palette pre-pass failed, using original source: {e}")
            return source

    def _fingerprint_frames(self, artifacts: list[Path], meta: SequenceMetadata) -> list[tuple[int, float]]:
        total = len(artifacts)
        entries: list[tuple[int, float]] = []

        for i, path in enumerate(artifacts):
            if i % PROGRESS_EVERY_N_FRAMES == 0 or i == total - 1:
                self._emit(ProgressStage.PROCESSING, f"Processing frame {i + 1}/{total}", current=i + 1, total=total)

            delay = frame_delay(meta.delays, i, total)
            frame = self.codec.decode(path, index=i, delay=delay)
            entries.append((compute_fingerprint(frame), delay))
            del frame

        return entries

    def _on_compare(self, index: int, total: int) -> None:
        if index % PROGRESS_EVERY_N_FRAMES == 0 or index == total - 1:
            self._emit(
                ProgressStage.DEDUPLICATING,
                f"Comparing frame {index + 1}/{total}",
                current=index + 1,
                total=total,
            )

    def _rebuild_remux(
        self,
        artifacts: list[Path],
        groups: list[MergeGroup],
        output: Path,
        colors: int,
        optimize_level: int,
    ) -> None:
        """Concatenate the representatives' own artifacts; pixels are not re-encoded."""
        frames = [
            (artifacts[g.representative_index], int(round(g.total_delay * 100)))
            for g in groups
        ]
        self.codec.remux(frames, output, colors, optimize_level=optimize_level)

    def _rebuild_reencode(
        self,
        artifacts: list[Path],
        groups: list[MergeGroup],
        meta: SequenceMetadata,
        output: Path,
        quality: int,
        colors: int,
        work_dir: Path,
    ) -> None:
        """
        Encode representatives with the quality-driven encoder, then rewrite
        the exact per-group delays the encoder cannot express.
        """
        unique_dir = ensure_dir(work_dir / "unique")
        png_paths: list[Path] = []
        width, height = meta.width, meta.height

        for i, group in enumerate(groups):
            frame = self.codec.decode(artifacts[group.representative_index], index=group.representative_index)
            if i == 0 and (width == 0 or height == 0):
                width, height = frame.width, frame.height
            png_path = unique_dir / f"frame_{i:04d}.png"
            try:
                Image.fromarray(frame.pixels).save(png_path)
            except OSError as e:
                raise ArtifactIOError(f"Cannot write {png_path}: {e}") from e
            png_paths.append(png_path)

        if width == 0 or height == 0:
            raise CodecError("Cannot determine output dimensions")

        total_time = sum(g.total_delay for g in groups)
        avg_fps = len(groups) / total_time if total_time > 0 else DEFAULT_REENCODE_FPS

        encoded = work_dir / "encoded.gif"
        self.codec.encode(png_paths, encoded, quality=quality, fps=avg_fps, width=width, height=height)

        delays_cs = [int(round(g.total_delay * 100)) for g in groups]
        self.codec.set_delays(encoded, delays_cs, output, colors=colors)
