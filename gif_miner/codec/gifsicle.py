"""
gifsicle / gifski codec.

Implements FrameCodec by invoking the gifsicle and gifski command line
tools. Single-frame artifacts are decoded in-process with Pillow.
"""

import os
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from ..config import (
    MAX_PALETTE_COLORS,
    TOOL_OUTPUT_TAIL_LINES,
    CodecConfig,
    ResizeMethod,
)
from ..errors import CodecError, InvalidParameterError
from ..logging import get_logger
from .base import Frame, FrameCodec, SequenceMetadata
from .metadata import parse_gifsicle_info
from .palette import decode_indexed_frame

logger = get_logger(__name__)


def frame_range_selector(start: int, end: int) -> str:
    """gifsicle frame selector for an inclusive range."""
    if start == end:
        return f"#{start}"
    return f"#{start}-{end}"


class GifsicleCodec(FrameCodec):
    """
    FrameCodec backed by gifsicle (select, explode, remux, delays, resize,
    info) and gifski (quality-driven encoding).

    Example:
        >>> codec = GifsicleCodec(CodecConfig())
        >>> meta = codec.metadata(Path("anim.gif"))
        >>> meta.frame_count
        162
    """

    def __init__(self, config: Optional[CodecConfig] = None):
        self.config = config or CodecConfig()

    # ------------------------------------------------------------------
    # Tool invocation
    # ------------------------------------------------------------------

    def _run_tool(self, tool: str, args: Sequence[str], action: str) -> subprocess.CompletedProcess:
        """
        Run one tool invocation and raise CodecError on failure.

        Args:
            tool: Executable path
            args: Arguments (no shell involved)
            action: Short description for error messages
        """
        cmd = [tool, *[str(a) for a in args]]
        logger.debug(f"[CMD] {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.config.timeout,
            )
        except FileNotFoundError as e:
            raise CodecError(f"{action} failed: {tool} not found", command=cmd, diagnostic=str(e)) from e
        except subprocess.TimeoutExpired as e:
            raise CodecError(
                f"{action} timed out after {self.config.timeout}s", command=cmd, diagnostic=str(e)
            ) from e

        lines = (result.stdout or "").splitlines()
        tail = lines[-TOOL_OUTPUT_TAIL_LINES:]
        if tail:
            logger.debug("[CMD RESULT] Last lines:\n" + "\n".join(tail))
        else:
            logger.debug("[CMD RESULT] (Empty output)")

        if result.returncode != 0:
            diagnostic = (result.stderr or "").strip() or (result.stdout or "").strip()
            raise CodecError(f"{action} failed (exit {result.returncode})", command=cmd, diagnostic=diagnostic)

        return result

    def _gifsicle(self, args: Sequence[str], action: str) -> subprocess.CompletedProcess:
        return self._run_tool(self.config.gifsicle_path, args, action)

    def _gifski(self, args: Sequence[str], action: str) -> subprocess.CompletedProcess:
        return self._run_tool(self.config.gifski_path, args, action)

    def version(self) -> str:
        """gifski version string (availability check)."""
        return self._gifski(["--version"], "gifski version check").stdout.strip()

    # ------------------------------------------------------------------
    # FrameCodec
    # ------------------------------------------------------------------

    def metadata(self, source: Path) -> SequenceMetadata:
        result = self._gifsicle(["--info", str(source)], "gifsicle --info")
        return parse_gifsicle_info(result.stdout)

    def decode(self, path: Path, index: int = 0, delay: float = 0.0) -> Frame:
        pixels, degraded = decode_indexed_frame(path)
        return Frame(index=index, delay=delay, pixels=pixels, degraded=degraded)

    def explode(
        self,
        source: Path,
        output_prefix: Path,
        index_range: Optional[tuple[int, int]] = None,
        resize: Optional[tuple[int, int]] = None,
        resize_method: ResizeMethod = ResizeMethod.MIX,
        unoptimize: bool = False,
    ) -> None:
        args: list[str] = ["--explode"]
        if unoptimize:
            args.append("--unoptimize")
        if resize:
            args += ["--resize", f"{resize[0]}x{resize[1]}", "--resize-method", ResizeMethod(resize_method).value]
        args.append(str(source))
        if index_range is not None:
            args.append(frame_range_selector(*index_range))
        args += ["-o", str(output_prefix)]

        label = "gifsicle explode"
        if index_range is not None:
            label = f"gifsicle explode batch {index_range[0]}-{index_range[1]}"
        self._gifsicle(args, label)

    def select(self, source: Path, indices: Sequence[int], output: Path) -> Path:
        args = [str(source), "--no-warnings", *[f"#{i}" for i in indices], "-o", str(output)]
        self._gifsicle(args, "gifsicle frame select")
        return Path(output)

    def copy_frames(
        self,
        source: Path,
        output: Path,
        index_range: Optional[tuple[int, int]] = None,
        unoptimize: bool = False,
    ) -> Path:
        args: list[str] = ["--unoptimize"] if unoptimize else []
        args.append(str(source))
        if index_range is not None:
            args.append(frame_range_selector(*index_range))
        args += ["-o", str(output)]
        self._gifsicle(args, "gifsicle unoptimize" if unoptimize else "gifsicle slice")
        return Path(output)

    def delete_frames(self, source: Path, index_range: tuple[int, int], output: Path) -> Path:
        args = [str(source), "--no-warnings", "--delete", frame_range_selector(*index_range), "-o", str(output)]
        self._gifsicle(args, "gifsicle delete frames")
        return Path(output)

    def optimize(self, path: Path, level: int = 3) -> Path:
        self._gifsicle(["-b", f"-O{level}", str(path)], "gifsicle optimize")
        return Path(path)

    def remux(
        self,
        frames: Sequence[tuple[Path, int]],
        output: Path,
        colors: int,
        optimize_level: int = 3,
    ) -> Path:
        args: list[str] = ["--no-warnings"]
        for path, delay_cs in frames:
            args += [str(path), "--delay", str(int(delay_cs))]
        args += [
            "--colors", str(min(colors, MAX_PALETTE_COLORS)),
            f"--optimize={optimize_level}",
            "-o", str(output),
        ]
        self._gifsicle(args, "gifsicle remux")
        return Path(output)

    def encode(
        self,
        frame_paths: Sequence[Path],
        output: Path,
        quality: int,
        fps: float,
        width: int,
        height: int,
    ) -> Path:
        args = [
            "-o", str(output),
            "-Q", str(quality),
            "-r", f"{fps:.2f}",
            "-W", str(width),
            "-H", str(height),
            *[str(p) for p in frame_paths],
        ]
        self._gifski(args, "gifski encode")
        return Path(output)

    def set_delays(
        self,
        source: Path,
        delays_cs: Sequence[int],
        output: Path,
        colors: Optional[int] = None,
    ) -> Path:
        args: list[str] = [str(source), "--no-warnings"]
        for i, delay_cs in enumerate(delays_cs):
            args += ["--delay", str(int(delay_cs)), f"#{i}"]
        if colors is not None:
            args += ["--colors", str(min(colors, MAX_PALETTE_COLORS))]
        args += ["-o", str(output)]
        self._gifsicle(args, "gifsicle set delays")
        return Path(output)

    def quantize(self, source: Path, colors: int, output: Path) -> Path:
        args = ["--colors", str(min(colors, MAX_PALETTE_COLORS)), str(source), "-o", str(output)]
        self._gifsicle(args, "gifsicle quantize")
        if not Path(output).exists() or os.path.getsize(output) == 0:
            raise CodecError("gifsicle quantize produced no output", diagnostic=str(output))
        return Path(output)

    def resize(
        self,
        source: Path,
        output: Path,
        width: int,
        height: int,
        method: ResizeMethod = ResizeMethod.MIX,
        optimize: bool = True,
    ) -> Path:
        if width <= 0 or height <= 0:
            raise InvalidParameterError(f"Resize dimensions must be positive, got {width}x{height}")
        args = [
            "--no-warnings",
            "--resize", f"{width}x{height}",
            "--resize-method", ResizeMethod(method).value,
            "--resize-colors", str(MAX_PALETTE_COLORS),
            "--dither",
        ]
        if optimize:
            args.append("--optimize=3")
        args += [str(source), "-o", str(output)]
        self._gifsicle(args, "gifsicle resize")
        return Path(output)
