"""
Shared fixtures: a recording progress sink and an in-memory codec.

FakeCodec writes every artifact as a real file (numpy .npy payload) so the
filesystem-based resume logic runs unmodified, and records each call.
"""

import shutil
import threading
from pathlib import Path
from typing import Optional

import numpy as np
import pytest
from PIL import Image

from gif_miner.codec import Frame, FrameCodec, FrameGeometry, SequenceMetadata
from gif_miner.config import ProgressStage, ResizeMethod
from gif_miner.errors import CodecError
from gif_miner.progress import ProgressEvent, ProgressSink


class RecordingSink(ProgressSink):
    def __init__(self):
        self.events: list[ProgressEvent] = []
        self._lock = threading.Lock()

    def emit(self, event: ProgressEvent) -> None:
        with self._lock:
            self.events.append(event)

    def stages(self) -> list[ProgressStage]:
        return [e.stage for e in self.events]

    def of(self, stage: ProgressStage) -> list[ProgressEvent]:
        return [e for e in self.events if e.stage == stage]


def ramp(increasing: bool = True, width: int = 90, height: int = 80) -> np.ndarray:
    """Horizontal luma ramp."""
    row = np.linspace(0, 255, width).astype(np.uint8)
    if not increasing:
        row = row[::-1]
    gray = np.tile(row, (height, 1))
    return np.repeat(gray[:, :, None], 3, axis=2).copy()


def stripes(width: int = 90, height: int = 80, period: int = 10) -> np.ndarray:
    """Vertical bright/dark stripes."""
    cols = ((np.arange(width) // period) % 2 == 0).astype(np.uint8) * 255
    gray = np.tile(cols, (height, 1))
    return np.repeat(gray[:, :, None], 3, axis=2).copy()


def write_array(path: Path, pixels: np.ndarray) -> None:
    with open(path, "wb") as f:
        np.save(f, pixels)


def read_array(path: Path) -> np.ndarray:
    with open(path, "rb") as f:
        return np.load(f)


class FakeCodec(FrameCodec):
    """In-memory FrameCodec double."""

    def __init__(
        self,
        frames: Optional[list[np.ndarray]] = None,
        delays: Optional[list[float]] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
        pad: int = 3,
        optimized: bool = False,
    ):
        self.frames = frames if frames is not None else []
        self.delays = list(delays) if delays is not None else []
        first = self.frames[0] if self.frames else None
        self.width = width if width is not None else (first.shape[1] if first is not None else 0)
        self.height = height if height is not None else (first.shape[0] if first is not None else 0)
        self.pad = pad
        self.optimized = optimized

        self.calls: list[tuple[str, dict]] = []
        self.fail_on: dict[str, Exception] = {}
        self.fail_explode_at: Optional[int] = None

        # Optional handshake to hold explode inside a batch
        self.gate: Optional[threading.Event] = None
        self.entered = threading.Event()

        self.remuxed: list[np.ndarray] = []
        self.encoded: list[np.ndarray] = []

    @classmethod
    def with_count(cls, count: int, **kwargs) -> "FakeCodec":
        tiny = np.zeros((2, 2, 3), dtype=np.uint8)
        return cls(frames=[tiny] * count, delays=[0.1] * count, **kwargs)

    def _record(self, name: str, **kwargs) -> None:
        self.calls.append((name, kwargs))
        if name in self.fail_on:
            raise self.fail_on[name]

    def calls_to(self, name: str) -> list[dict]:
        return [kwargs for call, kwargs in self.calls if call == name]

    def metadata(self, source: Path) -> SequenceMetadata:
        self._record("metadata", source=source)
        return SequenceMetadata(
            frame_count=len(self.frames),
            width=self.width,
            height=self.height,
            delays=list(self.delays),
            frames=self._geometry(),
        )

    def _geometry(self) -> list[FrameGeometry]:
        if not self.optimized or not self.frames:
            return []
        # Second image cropped and offset, as frame differencing leaves it
        geometry = [FrameGeometry(0, self.width, self.height)]
        geometry += [FrameGeometry(i, 1, 1, left=1, top=1) for i in range(1, len(self.frames))]
        return geometry

    def decode(self, path: Path, index: int = 0, delay: float = 0.0) -> Frame:
        self._record("decode", path=path)
        return Frame(index=index, delay=delay, pixels=read_array(path))

    def explode(self, source, output_prefix, index_range=None, resize=None,
                resize_method=ResizeMethod.MIX, unoptimize=False) -> None:
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(5)
        self._record(
            "explode", source=source, output_prefix=output_prefix, index_range=index_range,
            resize=resize, resize_method=resize_method, unoptimize=unoptimize,
        )
        start, end = index_range if index_range is not None else (0, len(self.frames) - 1)
        if self.fail_explode_at is not None and start == self.fail_explode_at:
            raise CodecError(f"gifsicle explode batch {start}-{end} failed", diagnostic="corrupt frame")
        output_prefix = Path(output_prefix)
        for i in range(start, end + 1):
            name = f"{output_prefix.name}.{i:0{self.pad}d}" if self.pad else f"{output_prefix.name}.{i}"
            write_array(output_prefix.parent / name, self.frames[i])

    def select(self, source, indices, output) -> Path:
        self._record("select", source=source, indices=list(indices), output=output)
        Path(output).write_bytes(b"GIF89a-selected")
        return Path(output)

    def copy_frames(self, source, output, index_range=None, unoptimize=False) -> Path:
        self._record("copy_frames", source=source, output=output, index_range=index_range, unoptimize=unoptimize)
        shutil.copyfile(source, output)
        return Path(output)

    def delete_frames(self, source, index_range, output) -> Path:
        self._record("delete_frames", source=source, index_range=index_range, output=output)
        shutil.copyfile(source, output)
        return Path(output)

    def optimize(self, path, level=3) -> Path:
        self._record("optimize", path=path, level=level)
        return Path(path)

    def remux(self, frames, output, colors, optimize_level=3) -> Path:
        self._record("remux", frames=list(frames), output=output, colors=colors, optimize_level=optimize_level)
        self.remuxed = [read_array(path) for path, _ in frames]
        Path(output).write_bytes(b"GIF89a" + b"\0" * 100)
        return Path(output)

    def encode(self, frame_paths, output, quality, fps, width, height) -> Path:
        self._record("encode", frame_paths=list(frame_paths), output=output, quality=quality,
                     fps=fps, width=width, height=height)
        self.encoded = [np.asarray(Image.open(p).convert("RGB")) for p in frame_paths]
        Path(output).write_bytes(b"GIF89a" + b"\0" * 200)
        return Path(output)

    def set_delays(self, source, delays_cs, output, colors=None) -> Path:
        self._record("set_delays", source=source, delays_cs=list(delays_cs), output=output, colors=colors)
        shutil.copyfile(source, output)
        return Path(output)

    def quantize(self, source, colors, output) -> Path:
        self._record("quantize", source=source, colors=colors, output=output)
        shutil.copyfile(source, output)
        return Path(output)

    def resize(self, source, output, width, height, method=ResizeMethod.MIX, optimize=True) -> Path:
        self._record("resize", source=source, output=output, width=width, height=height,
                     method=method, optimize=optimize)
        shutil.copyfile(source, output)
        return Path(output)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def source_gif(tmp_path):
    path = tmp_path / "anim.gif"
    path.write_bytes(b"GIF89a" + b"\0" * 1000)
    return path
