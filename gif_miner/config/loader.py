"""
Config Loader - Central config loading with section-specific access.

Usage:
    from gif_miner.config import get_dedup_config, get_extraction_config

    config = get_dedup_config()  # Returns DedupConfig
    print(config.similarity_threshold)
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from omegaconf import OmegaConf

from .config import (
    CodecConfig,
    DedupConfig,
    EditConfig,
    ExtractionConfig,
    FpsReduceConfig,
    LoggingConfig,
)

# Load .env file (looks in cwd and parent directories)
load_dotenv()

# Environment variable for config override
CONFIG_PATH_ENV = "GIF_MINER_CONFIG"

# Default config path (relative to project root)
DEFAULT_CONFIG = Path(__file__).parent.parent.parent / "settings" / "default.yaml"


# Path set by reload_config(); argument-less getters read it
_active_path: str | None = None


def _resolve_path(config_path: str | None = None) -> Path:
    """
    Pick the config file.

    Priority:
    1. Explicit config_path argument
    2. Path activated by reload_config()
    3. GIF_MINER_CONFIG environment variable
    4. Default settings/default.yaml
    """
    if config_path:
        return Path(config_path)
    if _active_path:
        return Path(_active_path)
    if os.getenv(CONFIG_PATH_ENV):
        return Path(os.getenv(CONFIG_PATH_ENV))
    return DEFAULT_CONFIG


@lru_cache(maxsize=4)
def _load_resolved(path_str: str) -> dict[str, Any]:
    """
    Load and merge one YAML file (cached per resolved path).

    A missing default file yields an empty config so that every section
    falls back to its model defaults.
    """
    path = Path(path_str)

    if not path.exists():
        if path == DEFAULT_CONFIG:
            return {}
        raise FileNotFoundError(f"Config file not found: {path}")

    # Load with OmegaConf (supports merging, interpolation)
    cfg = OmegaConf.load(path)

    # If custom config, merge with defaults
    if path != DEFAULT_CONFIG and DEFAULT_CONFIG.exists():
        base = OmegaConf.load(DEFAULT_CONFIG)
        cfg = OmegaConf.merge(base, cfg)

    return OmegaConf.to_container(cfg, resolve=True) or {}


def _load_yaml(config_path: str | None = None) -> dict[str, Any]:
    return _load_resolved(str(_resolve_path(config_path)))


def reload_config(config_path: str | None = None) -> None:
    """
    Clear the cache and make ``config_path`` the active config.

    Passing None drops a previously activated path.
    """
    global _active_path
    _load_resolved.cache_clear()
    _active_path = str(config_path) if config_path else None
    _load_yaml()


# =============================================================================
# Section-specific config getters
# =============================================================================

def get_codec_config(config_path: str | None = None) -> CodecConfig:
    """Get external toolchain configuration."""
    yaml = _load_yaml(config_path)
    return CodecConfig(**(yaml.get("codec") or {}))


def get_dedup_config(config_path: str | None = None) -> DedupConfig:
    """Get deduplication configuration."""
    yaml = _load_yaml(config_path)
    data = dict(yaml.get("dedup") or {})
    if not data.get("work_dir") and yaml.get("work_dir"):
        data["work_dir"] = yaml["work_dir"]
    return DedupConfig(**data)


def get_extraction_config(config_path: str | None = None) -> ExtractionConfig:
    """Get batched extraction configuration."""
    yaml = _load_yaml(config_path)
    return ExtractionConfig(**(yaml.get("extraction") or {}))


def get_fps_reduce_config(config_path: str | None = None) -> FpsReduceConfig:
    """Get frame rate reduction defaults."""
    yaml = _load_yaml(config_path)
    return FpsReduceConfig(**(yaml.get("reduce_fps") or {}))


def get_edit_config(config_path: str | None = None) -> EditConfig:
    """Get slice / delete / resize defaults."""
    yaml = _load_yaml(config_path)
    return EditConfig(**(yaml.get("edit") or {}))


def get_logging_config(config_path: str | None = None) -> LoggingConfig:
    """Get logging configuration."""
    yaml = _load_yaml(config_path)
    return LoggingConfig(**(yaml.get("logging") or {}))


def get_work_dir(config_path: str | None = None) -> Path | None:
    """Get global work directory (None means system temp)."""
    yaml = _load_yaml(config_path)
    work_dir = yaml.get("work_dir")
    return Path(work_dir) if work_dir else None
