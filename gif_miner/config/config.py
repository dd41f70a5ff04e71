"""
Configuration models - Pydantic models for YAML config.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .constants import ResizeMethod


class CodecConfig(BaseModel):
    """External toolchain config."""
    gifsicle_path: str = Field(default="gifsicle")
    gifski_path: str = Field(default="gifski")
    timeout: int = Field(default=600, description="Seconds before a tool invocation is killed")


class DedupConfig(BaseModel):
    """Deduplication stage config."""
    quality: int = Field(default=90, description="Encoder quality 1-100 (re-encode strategy)")
    similarity_threshold: int = Field(default=95, description="Required similarity 0-100")
    target_colors: int = Field(default=256, description="Palette size, at least 2")
    use_indexed_palette: bool = Field(default=False, description="Remux source frames instead of re-encoding")
    optimize_level: int = Field(default=3)
    work_dir: Optional[Path] = Field(default=None, description="Temp root (system temp if unset)")


class ExtractionConfig(BaseModel):
    """Batched extraction config."""
    batch_size: int = Field(default=100)
    max_preview: int = Field(default=120, description="Bounding box for thumbnails (pixels)")
    resize_method: ResizeMethod = Field(default=ResizeMethod.MIX)
    poll_interval: float = Field(default=0.1, description="Pause-loop poll interval (seconds)")
    throttle_interval: float = Field(default=0.1, description="Sleep between batches (seconds)")
    join_timeout: Optional[float] = Field(default=None, description="Cancel join timeout, None waits forever")


class FpsReduceConfig(BaseModel):
    """Frame rate reduction defaults (milliseconds)."""
    keep_interval: int = Field(default=2)
    delay_threshold: int = Field(default=50)
    max_delay: int = Field(default=500)


class EditConfig(BaseModel):
    """Slice / delete / resize defaults."""
    optimize: bool = Field(default=False, description="Run an -O pass on slice and delete output")
    optimize_level: int = Field(default=3)
    resize_method: ResizeMethod = Field(default=ResizeMethod.MIX)
    resize_optimize: bool = Field(default=True)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO")
    log_file: str = Field(default="")
