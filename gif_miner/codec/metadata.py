"""
gifsicle --info output adapter.

Turns the human-readable report of ``gifsicle --info`` (gifsicle 1.9x) into
SequenceMetadata. The grammar relied on:

    * <name> <N> images            (or "1 image")
      logical screen <W>x<H>
      + image #<i> <w>x<h> [at <x>,<y>] ...
        ... delay <seconds>s

Lines that do not match are ignored; malformed numbers are skipped. Only
delays that are actually reported are collected (gifsicle omits zero
delays), so ``len(delays)`` may be smaller than ``frame_count``.
"""

import re
from typing import Optional

from ..logging import get_logger
from .base import FrameGeometry, SequenceMetadata

logger = get_logger(__name__)

INFO_GRAMMAR_VERSION = "gifsicle-1.9"

_IMAGE_COUNT_RE = re.compile(r"^\*\s+.*?\s(\d+)\s+images?\s*$")
_LOGICAL_SCREEN_RE = re.compile(r"logical screen\s+(\d+)x(\d+)")
_IMAGE_RE = re.compile(r"^\+\s+image\s+#(\d+)\s+(\d+)x(\d+)(?:\s+at\s+(-?\d+),(-?\d+))?")
_DELAY_RE = re.compile(r"delay\s+([0-9]*\.?[0-9]+)s\b")


def _parse_dimensions(line: str) -> Optional[tuple[int, int]]:
    match = _LOGICAL_SCREEN_RE.search(line)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def parse_gifsicle_info(text: str) -> SequenceMetadata:
    """
    Parse ``gifsicle --info`` stdout.

    Never raises on malformed input; unknown lines are skipped.

    Args:
        text: Raw stdout of ``gifsicle --info <file>``

    Returns:
        SequenceMetadata (zeros where the report was silent)
    """
    meta = SequenceMetadata()

    for raw_line in (text or "").splitlines():
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith("*"):
            match = _IMAGE_COUNT_RE.match(line)
            if match:
                meta.frame_count = int(match.group(1))
            continue

        if line.startswith("logical screen"):
            dims = _parse_dimensions(line)
            if dims:
                meta.width, meta.height = dims
            continue

        if line.startswith("+ image"):
            match = _IMAGE_RE.match(line)
            if match:
                meta.frames.append(FrameGeometry(
                    index=int(match.group(1)),
                    width=int(match.group(2)),
                    height=int(match.group(3)),
                    left=int(match.group(4) or 0),
                    top=int(match.group(5) or 0),
                ))
            else:
                logger.debug(f"Unrecognized image line in info output: {line!r}")
            continue

        if "delay" in line:
            match = _DELAY_RE.search(line)
            if match:
                try:
                    meta.delays.append(float(match.group(1)))
                except ValueError:
                    logger.debug(f"Bad delay value in info output: {line!r}")

    # Older reports may omit the image count header
    if meta.frame_count == 0 and meta.frames:
        meta.frame_count = len(meta.frames)

    return meta
