"""
Capture engine exceptions.

These exceptions are raised inside the engine and caught at the trigger
boundary (``engine.capture_safely`` and the notify hook), which log them and
carry on. Nothing in this package may take down the host process.
"""

from pathlib import Path

from vcs.exceptions import RepositoryUnavailableError

__all__ = ["CaptureError", "RepositoryUnavailableError", "StorageError", "TranscriptError"]


class CaptureError(Exception):
    """Base exception for all capture errors."""

    pass


class StorageError(CaptureError):
    """Raised when the persisted store cannot be read or written."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class TranscriptError(CaptureError):
    """Raised when a transcript cannot be opened at all."""

    pass
