"""Frame codec interface and the gifsicle/gifski implementation."""

from .base import Frame, FrameCodec, FrameGeometry, SequenceMetadata
from .gifsicle import GifsicleCodec, frame_range_selector
from .metadata import parse_gifsicle_info
from .palette import decode_indexed_frame, indices_to_rgb, resolve_palette

__all__ = [
    "Frame",
    "FrameCodec",
    "FrameGeometry",
    "SequenceMetadata",
    "GifsicleCodec",
    "frame_range_selector",
    "parse_gifsicle_info",
    "decode_indexed_frame",
    "indices_to_rgb",
    "resolve_palette",
]
