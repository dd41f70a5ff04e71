"""
Input Validation Utilities

Range checks for job options. Each validator returns ``(is_valid, error)``;
callers raise InvalidParameterError on failure.
"""

from typing import Optional

from ..config import DedupConfig, ExtractionConfig


def validate_dedup_options(config: DedupConfig) -> tuple[bool, Optional[str]]:
    """
    Validate deduplication options.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not 1 <= config.quality <= 100:
        return False, f"Quality must be between 1 and 100, got {config.quality}"

    if not 0 <= config.similarity_threshold <= 100:
        return False, f"Similarity threshold must be between 0 and 100, got {config.similarity_threshold}"

    if config.target_colors < 2:
        return False, f"Target colors must be at least 2, got {config.target_colors}"

    return True, None


def validate_reduce_params(keep_interval: int, delays: list) -> tuple[bool, Optional[str]]:
    """Validate frame rate reduction inputs."""
    if keep_interval < 2:
        return False, f"Keep interval must be at least 2, got {keep_interval}"

    if not delays:
        return False, "No frame delays to reduce"

    if any(d < 0 for d in delays):
        return False, "Frame delays must be non-negative"

    return True, None


def validate_extraction_config(config: ExtractionConfig) -> tuple[bool, Optional[str]]:
    """Validate batched extraction settings."""
    if config.batch_size < 1:
        return False, f"Batch size must be at least 1, got {config.batch_size}"

    if config.max_preview < 1:
        return False, f"Preview size must be positive, got {config.max_preview}"

    if config.poll_interval <= 0:
        return False, f"Poll interval must be positive, got {config.poll_interval}"

    if config.throttle_interval < 0:
        return False, f"Throttle interval must be non-negative, got {config.throttle_interval}"

    return True, None


def validate_frame_range(start: int, end: int, frame_count: int = 0) -> tuple[bool, Optional[str]]:
    """
    Validate an inclusive frame range.

    ``frame_count`` of 0 means the count is unknown and only the ordering
    is checked.
    """
    if start < 0:
        return False, f"Start index must be non-negative, got {start}"

    if start > end:
        return False, f"Start index {start} is after end index {end}"

    if frame_count and end >= frame_count:
        return False, f"End index {end} out of range for {frame_count} frames"

    return True, None


def validate_frame_delays(delays_ms: list, expected: int) -> tuple[bool, Optional[str]]:
    """Per-frame delays (ms) must match the frame count and be non-negative."""
    if len(delays_ms) != expected:
        return False, f"Delay count ({len(delays_ms)}) does not match frame count ({expected})"

    if any(d < 0 for d in delays_ms):
        return False, "Frame delays must be non-negative"

    return True, None
