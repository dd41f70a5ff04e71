"""
Perceptual Hasher

64-bit horizontal-gradient difference hash (dHash). Each frame is resampled
to 9x8 with Lanczos, converted to luma, and bit ``y * 8 + x`` is set when
pixel ``(x, y)`` is brighter than its right neighbour.
"""

from typing import Union

import numpy as np
from PIL import Image

from ..codec import Frame
from ..config import HASH_HEIGHT, HASH_WIDTH


def compute_fingerprint(frame: Union[Frame, np.ndarray]) -> int:
    """
    Fingerprint a frame.

    Frames smaller than the 9x8 grid are upsampled by the same resize. A
    uniform frame has no gradients and hashes to 0.

    Args:
        frame: Frame or (height, width, 3) uint8 RGB array

    Returns:
        Fingerprint as a non-negative int below 2**64
    """
    pixels = frame.pixels if isinstance(frame, Frame) else frame
    pixels = np.ascontiguousarray(pixels, dtype=np.uint8)
    if pixels.size == 0:
        return 0

    img = Image.fromarray(pixels)
    small = img.resize((HASH_WIDTH, HASH_HEIGHT), Image.Resampling.LANCZOS).convert("L")
    luma = np.asarray(small, dtype=np.int16)

    bits = (luma[:, :-1] > luma[:, 1:]).ravel()
    fingerprint = 0
    for i in np.flatnonzero(bits):
        fingerprint |= 1 << int(i)
    return fingerprint


def hamming_distance(a: int, b: int) -> int:
    """Number of differing bits, in [0, 64]."""
    return (a ^ b).bit_count()
