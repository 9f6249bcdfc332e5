"""Exceptions and small helpers shared by backends and the invoker."""

from __future__ import annotations

import shutil
from pathlib import Path


class ExtractionError(Exception):
    """Base exception for extraction errors."""


class ConfigurationError(ExtractionError):
    """Raised when indexing configuration cannot be interpreted."""


class BackendUnavailableError(ExtractionError):
    """Raised when a backend's runtime dependency is missing."""


class ExtractionTimeoutError(ExtractionError):
    """Raised when a backend exceeds its wall-clock budget."""


class MemoryLimitExceededError(ExtractionError):
    """Raised when a backend exceeds its decode-memory ceiling."""


class BackendError(ExtractionError):
    """Raised when a backend fails for any other reason."""


class UnreadableFileError(BackendError):
    """Raised when a file cannot be opened or parsed at all."""


def check_binary_exists(binary_name: str) -> bool:
    """Return True if a binary is available on PATH (or is an existing path)."""

    if Path(binary_name).is_file():
        return True
    return shutil.which(binary_name) is not None


def ensure_readable(path: str | Path) -> Path:
    """Return *path* as a resolved Path, raising if it cannot be read."""

    file_path = Path(path).expanduser().resolve()
    if not file_path.exists():
        raise UnreadableFileError(f"File not found: {file_path}")
    if not file_path.is_file():
        raise UnreadableFileError(f"Path is not a file: {file_path}")
    try:
        with file_path.open("rb"):
            pass
    except OSError as exc:
        raise UnreadableFileError(f"File is not readable: {file_path}") from exc
    return file_path
