"""
Sequence Editor

Slice, delete, resize and retime operations on a whole sequence, each a
short chain of codec calls.

Slicing an optimized source first rewrites it with a full palette and then
unoptimizes just the selected range, so every kept frame is a complete
image before its delay is rewritten. When ``ExtractionSupervisor.prepare``
already left an unoptimized copy next to the source (or in ``work_dir``),
slice and delete work from that copy instead.
"""

import os
from pathlib import Path
from typing import Optional, Sequence

from ..codec import FrameCodec, SequenceMetadata
from ..config import (
    RESTORED_PALETTE_COLORS,
    TEMP_COLOR_RESTORED,
    TEMP_UNOPTIMIZED,
    EditConfig,
    ProgressStage,
    ResizeMethod,
)
from ..errors import InvalidParameterError
from ..logging import get_logger
from ..progress import ProgressEvent, ProgressSink, emit_safely
from ..utils.io import is_nonempty_file, temp_artifact_path
from ..utils.validators import validate_frame_delays, validate_frame_range
from .dedup_pipeline import frame_delay

logger = get_logger(__name__)


def _check(result: tuple[bool, Optional[str]]) -> None:
    is_valid, error = result
    if not is_valid:
        raise InvalidParameterError(error)


def _remove_quietly(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove {path}: {e}")


class SequenceEditor:
    """
    Codec-backed editing operations.

    Example:
        >>> editor = SequenceEditor(GifsicleCodec())
        >>> editor.slice(Path("in.gif"), Path("clip.gif"), 10, 19, [80] * 10)
        >>> editor.delete(Path("in.gif"), Path("cut.gif"), 0, 4)
    """

    def __init__(
        self,
        codec: FrameCodec,
        config: Optional[EditConfig] = None,
        sink: Optional[ProgressSink] = None,
        work_dir: Optional[Path] = None,
    ):
        self.codec = codec
        self.config = config or EditConfig()
        self.sink = sink
        self.work_dir = Path(work_dir) if work_dir else None

    def _emit(self, stage: ProgressStage, message: str) -> None:
        emit_safely(self.sink, ProgressEvent(stage, message))

    def effective_input(self, source: Path) -> Path:
        """Prepared unoptimized copy of ``source`` when one exists, else ``source``."""
        source = Path(source)
        roots = [self.work_dir] if self.work_dir else []
        roots.append(source.parent)
        for root in roots:
            candidate = temp_artifact_path(root, source, TEMP_UNOPTIMIZED)
            if is_nonempty_file(candidate):
                logger.debug(f"Editing {source.name} through {candidate.name}")
                return candidate
        return source

    @staticmethod
    def _source_delays_ms(meta: SequenceMetadata, start: int, end: int) -> list[int]:
        count = meta.frame_count
        return [int(round(frame_delay(meta.delays, i, count) * 1000)) for i in range(start, end + 1)]

    def _maybe_optimize(self, output: Path, optimize: Optional[bool]) -> None:
        if optimize is None:
            optimize = self.config.optimize
        if optimize:
            self.codec.optimize(output, self.config.optimize_level)

    def slice(
        self,
        source: Path,
        output: Path,
        start: int,
        end: int,
        delays_ms: Optional[Sequence[int]] = None,
        optimize: Optional[bool] = None,
    ) -> Path:
        """
        Write frames ``start..end`` (inclusive) of ``source`` to ``output``.

        Args:
            delays_ms: One delay per sliced frame; the source's own delays
                when omitted
            optimize: Override ``EditConfig.optimize``

        Raises:
            InvalidParameterError: Bad range or delay count
            CodecError: gifsicle failed
        """
        source = Path(source)
        output = Path(output)
        effective = self.effective_input(source)
        meta = self.codec.metadata(effective)

        _check(validate_frame_range(start, end, meta.frame_count))
        if delays_ms is None:
            delays_ms = self._source_delays_ms(meta, start, end)
        delays_ms = list(delays_ms)
        _check(validate_frame_delays(delays_ms, end - start + 1))

        out_dir = output.parent
        optimized = effective == source and meta.is_optimized
        self._emit(ProgressStage.PROCESSING, f"Slicing frames {start}-{end}")

        if optimized:
            restored = temp_artifact_path(out_dir, source, TEMP_COLOR_RESTORED)
            if not is_nonempty_file(restored):
                self.codec.quantize(source, RESTORED_PALETTE_COLORS, restored)
            sliced = temp_artifact_path(out_dir, source, f"slice-unopt_{start}-{end}")
            slice_input = restored
        else:
            sliced = temp_artifact_path(out_dir, source, f"sliced_{start}-{end}")
            slice_input = effective

        try:
            self.codec.copy_frames(slice_input, sliced, (start, end), unoptimize=optimized)
            self.codec.set_delays(sliced, [d // 10 for d in delays_ms], output)
        finally:
            _remove_quietly(sliced)

        self._maybe_optimize(output, optimize)
        logger.info(f"Sliced {source.name} [{start}-{end}] -> {output}")
        self._emit(ProgressStage.COMPLETE, f"Created: {output}")
        return output

    def delete(
        self,
        source: Path,
        output: Path,
        start: int,
        end: int,
        optimize: Optional[bool] = None,
    ) -> Path:
        """
        Write ``source`` without frames ``start..end`` (inclusive).

        Raises:
            InvalidParameterError: Bad range, or the range covers every frame
        """
        source = Path(source)
        output = Path(output)
        effective = self.effective_input(source)
        meta = self.codec.metadata(effective)

        _check(validate_frame_range(start, end, meta.frame_count))
        if meta.frame_count and start == 0 and end == meta.frame_count - 1:
            raise InvalidParameterError("Cannot delete every frame")

        self.codec.delete_frames(effective, (start, end), output)
        self._maybe_optimize(output, optimize)
        logger.info(f"Deleted frames {start}-{end} of {source.name} -> {output}")
        self._emit(ProgressStage.COMPLETE, f"Created: {output}")
        return output

    def resize(
        self,
        source: Path,
        output: Path,
        width: int,
        height: int,
        method: Optional[ResizeMethod] = None,
        optimize: Optional[bool] = None,
    ) -> Path:
        if width <= 0 or height <= 0:
            raise InvalidParameterError(f"Resize dimensions must be positive, got {width}x{height}")
        method = ResizeMethod(method) if method is not None else self.config.resize_method
        optimize = optimize if optimize is not None else self.config.resize_optimize

        self.codec.resize(Path(source), Path(output), width, height, method=method, optimize=optimize)
        logger.info(f"Resized {Path(source).name} to {width}x{height} ({method.value}) -> {output}")
        self._emit(ProgressStage.COMPLETE, f"Created: {output}")
        return Path(output)

    def set_delays(self, source: Path, output: Path, delays_ms: Sequence[int]) -> Path:
        """
        Rewrite every frame delay (ms, truncated to centiseconds).

        Raises:
            InvalidParameterError: Delay count differs from the frame count
        """
        source = Path(source)
        meta = self.codec.metadata(source)
        delays_ms = list(delays_ms)
        _check(validate_frame_delays(delays_ms, meta.frame_count))

        self.codec.set_delays(source, [d // 10 for d in delays_ms], Path(output))
        logger.info(f"Rewrote {len(delays_ms)} delays of {source.name} -> {output}")
        self._emit(ProgressStage.COMPLETE, f"Created: {output}")
        return Path(output)
