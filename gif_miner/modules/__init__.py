"""Core processing modules."""

from .batch_extractor import BatchExtractionController, ExtractionJob
from .dedup_pipeline import DedupPipeline, DedupResult
from .editor import SequenceEditor
from .fps_reducer import FrameRateReducer, ReduceResult, reduce_frame_rate
from .hasher import compute_fingerprint, hamming_distance
from .merger import MergeGroup, merge_frames, similarity_to_threshold
from .stats import SequenceStats, compute_stats, delay_stats
