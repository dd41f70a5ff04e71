"""
Frame codec interface.

The codec is the only component that touches pixel encoding: decoding an
on-disk frame artifact, selecting/exploding frames, remuxing, re-encoding,
rewriting delays and resizing. Every operation is synchronous and raises
CodecError with the tool's diagnostic text on failure.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from ..config import ResizeMethod


@dataclass
class Frame:
    """One decoded image at one sequence position."""
    index: int
    delay: float  # seconds
    pixels: np.ndarray  # (height, width, 3) uint8, row-major RGB
    degraded: bool = False  # True when no palette was available

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass
class FrameGeometry:
    """Placement of one stored image inside the logical screen."""
    index: int
    width: int
    height: int
    left: int = 0
    top: int = 0


@dataclass
class SequenceMetadata:
    """Sequence-level facts reported by the codec."""
    frame_count: int = 0
    width: int = 0
    height: int = 0
    delays: list[float] = field(default_factory=list)  # seconds per frame
    frames: list[FrameGeometry] = field(default_factory=list)

    @property
    def total_duration(self) -> float:
        return float(sum(self.delays))

    @property
    def delays_ms(self) -> list[int]:
        return [int(round(d * 1000)) for d in self.delays]

    @property
    def is_optimized(self) -> bool:
        """
        True when any stored image is cropped or offset against the
        logical screen (frame-differencing optimization was applied).
        """
        for geom in self.frames:
            if self.width and self.height and (geom.width != self.width or geom.height != self.height):
                return True
            if geom.left != 0 or geom.top != 0:
                return True
        return False


class FrameCodec(ABC):
    """
    Abstract codec capability.

    Index ranges are inclusive ``(start, end)`` pairs. Delay lists passed to
    the codec are in centiseconds, the native GIF unit.
    """

    @abstractmethod
    def metadata(self, source: Path) -> SequenceMetadata:
        """Frame count, logical dimensions and per-frame delays."""
        pass

    @abstractmethod
    def decode(self, path: Path, index: int = 0, delay: float = 0.0) -> Frame:
        """Decode a single-frame artifact into RGB pixels."""
        pass

    @abstractmethod
    def explode(
        self,
        source: Path,
        output_prefix: Path,
        index_range: Optional[tuple[int, int]] = None,
        resize: Optional[tuple[int, int]] = None,
        resize_method: ResizeMethod = ResizeMethod.MIX,
        unoptimize: bool = False,
    ) -> None:
        """Write each selected frame to ``<output_prefix>.<index>`` (padding is codec-specific)."""
        pass

    @abstractmethod
    def select(self, source: Path, indices: Sequence[int], output: Path) -> Path:
        """Write a new sequence holding only ``indices`` (in order)."""
        pass

    @abstractmethod
    def copy_frames(
        self,
        source: Path,
        output: Path,
        index_range: Optional[tuple[int, int]] = None,
        unoptimize: bool = False,
    ) -> Path:
        """Write frames ``index_range`` (all when None) to a new sequence, optionally as full frames."""
        pass

    @abstractmethod
    def delete_frames(self, source: Path, index_range: tuple[int, int], output: Path) -> Path:
        """Write ``source`` without the frames in ``index_range``."""
        pass

    @abstractmethod
    def optimize(self, path: Path, level: int = 3) -> Path:
        """Optimize ``path`` in place."""
        pass

    @abstractmethod
    def remux(
        self,
        frames: Sequence[tuple[Path, int]],
        output: Path,
        colors: int,
        optimize_level: int = 3,
    ) -> Path:
        """Concatenate single-frame artifacts with per-frame delays, no pixel re-encode."""
        pass

    @abstractmethod
    def encode(
        self,
        frame_paths: Sequence[Path],
        output: Path,
        quality: int,
        fps: float,
        width: int,
        height: int,
    ) -> Path:
        """Quality-driven encode of still images into a sequence."""
        pass

    @abstractmethod
    def set_delays(
        self,
        source: Path,
        delays_cs: Sequence[int],
        output: Path,
        colors: Optional[int] = None,
    ) -> Path:
        """Rewrite the delay of every frame."""
        pass

    @abstractmethod
    def quantize(self, source: Path, colors: int, output: Path) -> Path:
        """Reduce the palette to ``colors`` entries."""
        pass

    @abstractmethod
    def resize(
        self,
        source: Path,
        output: Path,
        width: int,
        height: int,
        method: ResizeMethod = ResizeMethod.MIX,
        optimize: bool = True,
    ) -> Path:
        """Resize every frame to ``width`` x ``height``."""
        pass
