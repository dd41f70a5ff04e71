"""
Indexed frame decoding.

A GIF frame stores palette indices. The frame's own local color table wins,
otherwise the sequence's global table is used. With neither available the
indices are interpreted as gray intensities; that result is flagged as
degraded because it is not the true picture.
"""

from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image

from ..errors import ArtifactIOError, CodecError
from ..logging import get_logger

logger = get_logger(__name__)


def resolve_palette(local: Optional[bytes], global_: Optional[bytes]) -> Optional[bytes]:
    """Local color table if present, else global, else None."""
    if local:
        return local
    if global_:
        return global_
    return None


def indices_to_rgb(indices: np.ndarray, palette: Optional[bytes]) -> tuple[np.ndarray, bool]:
    """
    Map a 2D array of palette indices to RGB.

    Indices that point past the end of the palette become black.

    Args:
        indices: (height, width) uint8 array
        palette: Flat RGB triplets, or None

    Returns:
        Tuple of ((height, width, 3) uint8 array, degraded flag)
    """
    indices = np.asarray(indices, dtype=np.uint8)

    if palette is None:
        return np.repeat(indices[:, :, None], 3, axis=2), True

    entries = len(palette) // 3
    table = np.zeros((256, 3), dtype=np.uint8)
    if entries:
        table[:entries] = np.frombuffer(bytes(palette[: entries * 3]), dtype=np.uint8).reshape(entries, 3)
    return table[indices], False


def _palette_bytes(palette) -> Optional[bytes]:
    if palette is None:
        return None
    try:
        mode, data = palette.getdata()
    except (AttributeError, ValueError):
        return None
    if mode not in ("RGB", "RGBA"):
        return None
    if mode == "RGBA":
        rgba = np.frombuffer(data, dtype=np.uint8)
        rgba = rgba[: len(rgba) // 4 * 4].reshape(-1, 4)
        return rgba[:, :3].tobytes()
    return bytes(data)


def decode_indexed_frame(path: Path) -> tuple[np.ndarray, bool]:
    """
    Decode the first image of a GIF artifact to RGB.

    Returns:
        Tuple of (pixels, degraded flag)

    Raises:
        ArtifactIOError: File missing or unreadable
        CodecError: File is not a decodable image
    """
    path = Path(path)
    if not path.exists():
        raise ArtifactIOError(f"Frame artifact not found: {path}")

    try:
        with Image.open(path) as img:
            img.load()
            if img.mode == "P":
                local = _palette_bytes(img.palette)
                global_ = _palette_bytes(getattr(img, "global_palette", None))
                palette = resolve_palette(local, global_)
                pixels, degraded = indices_to_rgb(np.asarray(img), palette)
            elif img.mode in ("L", "I", "1"):
                # No palette at all: indices / intensities only
                gray = np.asarray(img.convert("L"))
                pixels, degraded = indices_to_rgb(gray, None)
            else:
                pixels, degraded = np.asarray(img.convert("RGB")), False
    except OSError as e:
        if isinstance(e, FileNotFoundError):
            raise ArtifactIOError(f"Cannot read frame artifact {path}: {e}") from e
        raise CodecError(f"Cannot decode frame artifact {path}", diagnostic=str(e)) from e

    if degraded:
        logger.warning(f"No palette in {path.name}; decoding indices as intensities (degraded)")

    return np.ascontiguousarray(pixels, dtype=np.uint8), degraded
