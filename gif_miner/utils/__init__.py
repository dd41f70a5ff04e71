"""Utility functions."""

from .io import (
    artifact_name,
    batch_all_exist,
    canonicalize_artifacts,
    ensure_dir,
    extraction_dir,
    file_size_kb,
    is_nonempty_file,
    list_artifacts,
    safe_base_name,
    temp_artifact_path,
)
from .validators import (
    validate_dedup_options,
    validate_extraction_config,
    validate_frame_delays,
    validate_frame_range,
    validate_reduce_params,
)
