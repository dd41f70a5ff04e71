"""
Tests for the perceptual hasher.
"""

import numpy as np

from gif_miner.codec import Frame
from gif_miner.modules.hasher import compute_fingerprint, hamming_distance

from conftest import ramp, stripes

ALL_BITS = (1 << 64) - 1


class TestFingerprint:
    """Test difference hash computation."""

    def test_deterministic(self):
        pixels = stripes()
        assert compute_fingerprint(pixels) == compute_fingerprint(pixels)

    def test_copy_has_zero_distance(self):
        pixels = ramp(increasing=False)
        copy = pixels.copy()
        assert hamming_distance(compute_fingerprint(pixels), compute_fingerprint(copy)) == 0

    def test_accepts_frame(self):
        pixels = stripes()
        frame = Frame(index=0, delay=0.1, pixels=pixels)
        assert compute_fingerprint(frame) == compute_fingerprint(pixels)

    def test_uniform_frame_is_zero(self):
        blank = np.full((40, 60, 3), 128, dtype=np.uint8)
        assert compute_fingerprint(blank) == 0

    def test_gradient_direction(self):
        # Brighter on the left sets every bit, brighter on the right sets none
        assert compute_fingerprint(ramp(increasing=False)) == ALL_BITS
        assert compute_fingerprint(ramp(increasing=True)) == 0

    def test_tiny_frame_is_upsampled(self):
        tiny = np.array([[[255, 255, 255], [0, 0, 0]]], dtype=np.uint8)
        fingerprint = compute_fingerprint(tiny)
        assert 0 <= fingerprint <= ALL_BITS

    def test_fits_in_64_bits(self):
        assert compute_fingerprint(stripes()).bit_length() <= 64


class TestHammingDistance:
    """Test bit distance."""

    def test_identical(self):
        assert hamming_distance(0xDEADBEEF, 0xDEADBEEF) == 0

    def test_opposite(self):
        assert hamming_distance(0, ALL_BITS) == 64

    def test_few_bits(self):
        assert hamming_distance(0b1011, 0b0001) == 2
