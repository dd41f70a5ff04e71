"""
Constants and Enums - Single source of truth for all constant values.
"""

from enum import Enum


class ProgressStage(str, Enum):
    """Stage tag carried by every progress event."""
    STARTING = "starting"
    EXTRACTING = "extracting"
    DEDUPLICATING = "deduplicating"
    REBUILDING = "rebuilding"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"
    FULLFRAMES = "fullframes"
    PREVIEWS = "previews"
    PREPARING = "preparing"


class ExtractionKind(str, Enum):
    """Kind of batched extraction; each kind runs its own controller."""
    FULLFRAMES = "fullframes"
    PREVIEWS = "previews"


class ExtractionState(str, Enum):
    """Batch extraction controller states."""
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    CANCELLING = "CANCELLING"
    DONE = "DONE"
    FAILED = "FAILED"


class RebuildStrategy(str, Enum):
    """How the deduplicated sequence is written back out."""
    REMUX = "remux"        # palette-preserving, no pixel re-encode
    REENCODE = "reencode"  # quality-driven encoder + delay post-pass


class ResizeMethod(str, Enum):
    """Resampling methods understood by gifsicle --resize-method."""
    SAMPLE = "sample"
    MIX = "mix"
    CATROM = "catrom"
    MITCHELL = "mitchell"
    LANCZOS2 = "lanczos2"
    LANCZOS3 = "lanczos3"


# Terminal controller states
EXTRACTION_TERMINAL_STATES = frozenset({
    ExtractionState.DONE,
    ExtractionState.FAILED,
})

# Artifact file prefixes per extraction kind (canonical name: "<prefix>.<index>")
ARTIFACT_PREFIXES: dict[ExtractionKind, str] = {
    ExtractionKind.FULLFRAMES: "frame",
    ExtractionKind.PREVIEWS: "preview",
}

# Progress stage reported by each extraction kind
EXTRACTION_STAGES: dict[ExtractionKind, ProgressStage] = {
    ExtractionKind.FULLFRAMES: ProgressStage.FULLFRAMES,
    ExtractionKind.PREVIEWS: ProgressStage.PREVIEWS,
}

# Fingerprint geometry (difference hash: 9 columns -> 8 gradients per row)
HASH_WIDTH = 9
HASH_HEIGHT = 8
HASH_BITS = 64

# Delays
DEFAULT_FRAME_DELAY = 0.1  # seconds, when the source reports none
DEFAULT_REENCODE_FPS = 10.0

# Palette limits
MAX_PALETTE_COLORS = 256
RESTORED_PALETTE_COLORS = 255  # full-palette rewrite before unoptimizing

# Intermediate sequences written next to the extraction folders
TEMP_COLOR_RESTORED = "color_restored"
TEMP_UNOPTIMIZED = "unoptimized"

# Progress cadence for per-frame stages
PROGRESS_EVERY_N_FRAMES = 5

# Number of trailing tool output lines kept in debug logs
TOOL_OUTPUT_TAIL_LINES = 5
