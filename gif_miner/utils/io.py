"""
I/O Utilities

Artifact naming, directory layout and small filesystem helpers.
"""

import os
import re
from pathlib import Path
from typing import Optional

from ..errors import ArtifactIOError
from ..logging import get_logger

logger = get_logger(__name__)

# "<prefix>.<digits>" where the digits may carry zero padding
_PADDED_RE_TEMPLATE = r"^{prefix}\.(0\d+)$"


def ensure_dir(path: Path) -> Path:
    """
    Ensure directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        The same path for chaining
    """
    path = Path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArtifactIOError(f"Cannot create directory {path}: {e}") from e
    return path


def safe_base_name(source: Path) -> str:
    """
    Filesystem-safe name derived from a source file stem.

    Alphanumerics are kept, everything else becomes ``_<codepoint>`` so that
    distinct names never collide.

    >>> safe_base_name(Path("my cat.gif"))
    'my_32cat'
    """
    stem = Path(source).stem
    return "".join(ch if ch.isascii() and ch.isalnum() else f"_{ord(ch)}" for ch in stem)


def extraction_dir(root: Path, source: Path, suffix: str) -> Path:
    """Per-source artifact directory, e.g. ``<root>/_anim_fullframes``."""
    return Path(root) / f"_{safe_base_name(source)}_{suffix}"


def temp_artifact_path(root: Path, source: Path, tag: str) -> Path:
    """Per-source intermediate sequence, e.g. ``<root>/_anim_temp_unoptimized.gif``."""
    return Path(root) / f"_{safe_base_name(source)}_temp_{tag}.gif"


def is_nonempty_file(path: Path) -> bool:
    """True for an existing file with at least one byte (a reusable intermediate)."""
    try:
        return os.path.getsize(path) > 0
    except OSError:
        return False


def artifact_name(prefix: str, index: int) -> str:
    """Canonical unpadded artifact name, e.g. ``frame.42``."""
    return f"{prefix}.{index}"


def batch_all_exist(output_dir: Path, prefix: str, start: int, end: int) -> bool:
    """True when every canonical artifact in ``[start, end]`` is present."""
    output_dir = Path(output_dir)
    return all((output_dir / artifact_name(prefix, i)).exists() for i in range(start, end + 1))


def canonicalize_artifacts(
    output_dir: Path,
    prefix: str,
    start: int,
    end: int,
) -> list[int]:
    """
    Rename zero-padded codec output (``frame.0042``, ``frame.042``) in
    ``[start, end]`` to the canonical ``frame.42`` form.

    Returns:
        Indices that are still missing after renaming
    """
    output_dir = Path(output_dir)
    pattern = re.compile(_PADDED_RE_TEMPLATE.format(prefix=re.escape(prefix)))

    padded: dict[int, Path] = {}
    try:
        entries = list(output_dir.iterdir())
    except OSError as e:
        raise ArtifactIOError(f"Cannot list {output_dir}: {e}") from e

    for entry in entries:
        match = pattern.match(entry.name)
        if match:
            index = int(match.group(1))
            if start <= index <= end:
                padded.setdefault(index, entry)

    missing = []
    for index in range(start, end + 1):
        canonical = output_dir / artifact_name(prefix, index)
        if canonical.exists():
            continue
        source: Optional[Path] = padded.get(index)
        if source is None:
            missing.append(index)
            continue
        try:
            os.replace(source, canonical)
        except OSError as e:
            raise ArtifactIOError(f"Cannot rename {source.name} -> {canonical.name}: {e}") from e

    if missing:
        logger.warning(f"{len(missing)} {prefix} artifact(s) missing in range {start}-{end}")
    return missing


def file_size_kb(path: Path) -> float:
    """File size in kilobytes."""
    try:
        return os.path.getsize(path) / 1024.0
    except OSError as e:
        raise ArtifactIOError(f"Cannot stat {path}: {e}") from e


def list_artifacts(output_dir: Path, prefix: str) -> list[Path]:
    """``<prefix>.<digits>`` files in ``output_dir`` ordered by index (padding ignored)."""
    pattern = re.compile(rf"^{re.escape(prefix)}\.(\d+)$")
    found = []
    try:
        for entry in Path(output_dir).iterdir():
            match = pattern.match(entry.name)
            if match and entry.is_file():
                found.append((int(match.group(1)), entry))
    except OSError as e:
        raise ArtifactIOError(f"Cannot list {output_dir}: {e}") from e
    return [path for _, path in sorted(found)]
