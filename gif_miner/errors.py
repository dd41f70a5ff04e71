"""
Exception hierarchy.

Components raise these; background workers catch them at the thread
boundary and report through the progress sink instead of re-raising.
"""

from typing import Optional, Sequence


class GifMinerError(Exception):
    """Base class for all gif_miner failures."""


class InvalidParameterError(GifMinerError, ValueError):
    """Bad configuration, rejected before any work starts."""


class CodecError(GifMinerError):
    """An external decode/encode/remux invocation failed."""

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        diagnostic: str = "",
    ):
        self.command = list(command) if command else []
        self.diagnostic = diagnostic
        if diagnostic:
            message = f"{message}: {diagnostic.strip()}"
        super().__init__(message)


class ArtifactIOError(GifMinerError):
    """Filesystem failure while reading or writing artifacts."""


class StateError(GifMinerError):
    """Operation attempted in the wrong state (e.g. missing precursor artifact)."""


class ThreadJoinError(GifMinerError):
    """A worker thread did not exit within the allowed time."""
