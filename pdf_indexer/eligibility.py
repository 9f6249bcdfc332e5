"""Decide whether a file qualifies for extraction."""

from __future__ import annotations

from typing import Iterable

from .schema import FileRef


def parse_extensions(extensions: str | Iterable[str]) -> frozenset[str]:
    """Normalize an allow-list: ``"pdf PDF ai"`` -> ``{"pdf", "ai"}``."""
    tokens = extensions.split() if isinstance(extensions, str) else extensions
    return frozenset(t.strip().lstrip(".").lower() for t in tokens if t and t.strip())


def is_eligible(
    file_ref: FileRef,
    allowed_extensions: str | Iterable[str],
    max_size_bytes: int | None = None,
) -> bool:
    """True when the extension is allowed and the size is within the ceiling.

    The size ceiling is inclusive; ``None`` or ``0`` disables it.
    """
    if file_ref.ext.lstrip(".").lower() not in parse_extensions(allowed_extensions):
        return False
    if max_size_bytes and max_size_bytes > 0 and file_ref.size > max_size_bytes:
        return False
    return True
