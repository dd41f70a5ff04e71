"""
Frame Rate Reducer

Drops fast frames to cap the effective frame rate while leaving slow frames
(intentional holds) alone. Delays are integer milliseconds.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from ..codec import FrameCodec
from ..config import FpsReduceConfig, ProgressStage
from ..errors import InvalidParameterError
from ..logging import get_logger
from ..progress import ProgressEvent, ProgressSink, emit_safely
from ..utils.validators import validate_reduce_params

logger = get_logger(__name__)


@dataclass
class ReduceResult:
    """Frames kept by a reduction and their new delays (ms)."""
    kept_indices: list[int] = field(default_factory=list)
    new_delays: list[int] = field(default_factory=list)
    original_count: int = 0

    @property
    def dropped(self) -> int:
        return self.original_count - len(self.kept_indices)


def reduce_frame_rate(
    delays: Sequence[int],
    keep_interval: int,
    delay_threshold: int,
    max_delay: int,
) -> tuple[list[int], list[int]]:
    """
    Decide which frames survive.

    A frame with ``delay >= delay_threshold`` is kept alone with
    ``min(delay, max_delay)``. Otherwise a run of up to ``keep_interval`` fast
    frames, stopping at the first slow one, becomes one kept frame (the first
    of the run) with ``min(sum(run), max_delay)``.

    Returns:
        Tuple of (kept_indices, new_delays)

    Raises:
        InvalidParameterError: keep_interval < 2 or no delays
    """
    is_valid, error = validate_reduce_params(keep_interval, list(delays))
    if not is_valid:
        raise InvalidParameterError(error)

    kept: list[int] = []
    new_delays: list[int] = []
    n = len(delays)
    i = 0

    while i < n:
        delay = delays[i]
        if delay >= delay_threshold:
            kept.append(i)
            new_delays.append(min(delay, max_delay))
            i += 1
            continue

        # Fast run starts fresh here
        kept.append(i)
        run_total = 0
        run_length = 0
        while i < n and run_length < keep_interval and delays[i] < delay_threshold:
            run_total += delays[i]
            run_length += 1
            i += 1
        new_delays.append(min(run_total, max_delay))

    return kept, new_delays


class FrameRateReducer:
    """
    Applies reduce_frame_rate to a file through the codec.

    Example:
        >>> reducer = FrameRateReducer(codec, FpsReduceConfig(keep_interval=3))
        >>> result = reducer.apply(Path("in.gif"), Path("out.gif"))
        >>> result.dropped
        41
    """

    def __init__(
        self,
        codec: FrameCodec,
        config: Optional[FpsReduceConfig] = None,
        sink: Optional[ProgressSink] = None,
    ):
        self.codec = codec
        self.config = config or FpsReduceConfig()
        self.sink = sink

    def plan(self, delays: Sequence[int]) -> ReduceResult:
        kept, new_delays = reduce_frame_rate(
            delays,
            keep_interval=self.config.keep_interval,
            delay_threshold=self.config.delay_threshold,
            max_delay=self.config.max_delay,
        )
        return ReduceResult(kept_indices=kept, new_delays=new_delays, original_count=len(delays))

    def apply(
        self,
        source: Path,
        output: Path,
        delays: Optional[Sequence[int]] = None,
    ) -> ReduceResult:
        """
        Write a reduced copy of ``source`` to ``output``.

        Args:
            source: Input sequence
            output: Output path
            delays: Per-frame delays in ms (read from the source when omitted)
        """
        source = Path(source)
        output = Path(output)

        if delays is None:
            delays = self.codec.metadata(source).delays_ms

        result = self.plan(delays)
        logger.info(
            f"Reducing FPS: {result.original_count} -> {len(result.kept_indices)} frames "
            f"(keep interval: {self.config.keep_interval}, threshold: {self.config.delay_threshold}ms, "
            f"max: {self.config.max_delay}ms)"
        )
        emit_safely(self.sink, ProgressEvent(
            ProgressStage.PROCESSING,
            message="Reducing frame rate",
            current=len(result.kept_indices),
            total=result.original_count,
        ))

        temp_output = output.with_name(output.name + ".temp")
        try:
            self.codec.select(source, result.kept_indices, temp_output)
            self.codec.set_delays(temp_output, [d // 10 for d in result.new_delays], output)
        finally:
            try:
                os.remove(temp_output)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove {temp_output}: {e}")

        emit_safely(self.sink, ProgressEvent(
            ProgressStage.COMPLETE,
            message=f"Frame rate reduced: {output}",
            current=len(result.kept_indices),
            total=result.original_count,
        ))
        return result
