"""Configuration package - models, enums and YAML loading."""

from .config import (
    CodecConfig,
    DedupConfig,
    EditConfig,
    ExtractionConfig,
    FpsReduceConfig,
    LoggingConfig,
)
from .constants import (
    ARTIFACT_PREFIXES,
    DEFAULT_FRAME_DELAY,
    DEFAULT_REENCODE_FPS,
    EXTRACTION_STAGES,
    EXTRACTION_TERMINAL_STATES,
    HASH_BITS,
    HASH_HEIGHT,
    HASH_WIDTH,
    MAX_PALETTE_COLORS,
    PROGRESS_EVERY_N_FRAMES,
    RESTORED_PALETTE_COLORS,
    TEMP_COLOR_RESTORED,
    TEMP_UNOPTIMIZED,
    TOOL_OUTPUT_TAIL_LINES,
    ExtractionKind,
    ExtractionState,
    ProgressStage,
    RebuildStrategy,
    ResizeMethod,
)
from .loader import (
    get_codec_config,
    get_dedup_config,
    get_edit_config,
    get_extraction_config,
    get_fps_reduce_config,
    get_logging_config,
    get_work_dir,
    reload_config,
)
