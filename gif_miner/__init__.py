"""GIF Miner - perceptual frame deduplication and batched frame extraction."""

__version__ = "0.1.0"
