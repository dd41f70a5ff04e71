"""
Sequence statistics: duration, frame rates and the most common rates.
"""

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from ..codec import FrameCodec
from ..utils.io import file_size_kb


@dataclass
class SequenceStats:
    frame_count: int
    total_duration: float  # seconds
    avg_fps: float
    min_fps: float
    max_fps: float
    file_size_kb: float = 0.0
    width: int = 0
    height: int = 0
    is_optimized: bool = False
    common_fps: list[tuple[int, int]] = field(default_factory=list)  # (fps, count), most common first

    @property
    def mode1(self) -> Optional[tuple[int, int]]:
        return self.common_fps[0] if self.common_fps else None

    @property
    def mode2(self) -> Optional[tuple[int, int]]:
        return self.common_fps[1] if len(self.common_fps) > 1 else None


def _frame_fps(delay: float) -> float:
    return 1.0 / delay if delay > 0 else 0.0


def delay_stats(delays: Sequence[float]) -> tuple[float, float, float, list[tuple[int, int]]]:
    """
    Frame rate figures for a list of delays in seconds.

    Returns:
        Tuple of (avg_fps, min_fps, max_fps, two most common rounded fps)
    """
    total = float(sum(delays))
    avg_fps = len(delays) / total if delays and total > 0 else 0.0

    rates = [_frame_fps(d) for d in delays]
    min_fps = min(rates) if rates else 0.0
    max_fps = max(rates) if rates else 0.0

    counts = Counter(int(1.0 / d + 0.5) for d in delays if d > 0)
    # Ties go to the lower rate so the ordering is stable
    common = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[:2]

    return avg_fps, min_fps, max_fps, common


def compute_stats(codec: FrameCodec, source: Path) -> SequenceStats:
    """Collect statistics for one sequence file."""
    meta = codec.metadata(source)
    avg_fps, min_fps, max_fps, common = delay_stats(meta.delays)
    return SequenceStats(
        frame_count=meta.frame_count,
        total_duration=meta.total_duration,
        avg_fps=avg_fps,
        min_fps=min_fps,
        max_fps=max_fps,
        file_size_kb=file_size_kb(source),
        width=meta.width,
        height=meta.height,
        is_optimized=meta.is_optimized,
        common_fps=common,
    )
