"""Capability interface implemented by every extraction backend."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ..schema import MethodId


@runtime_checkable
class Backend(Protocol):
    """A way of extracting plain text from a PDF file.

    ``in_process`` backends run inside a Python process (the invoker starts a
    child per call) and receive a ``memory_limit_bytes`` keyword argument;
    they must be picklable so they can be sent to that child. External
    backends receive ``tool_path``, ``tool_options`` and ``timeout_seconds``
    and must kill their process when the timeout expires.
    """

    method_id: MethodId
    label: str
    in_process: bool

    def probe(self) -> bool:
        """Return True if the backend is usable in this environment."""
        ...

    def extract_text(self, pdf_path: str | Path, **limits: Any) -> str:
        """Return the document text; raise an ``ExtractionError`` on failure."""
        ...

    def release_memory(self) -> None:
        """Drop buffers the backend library keeps after an extraction."""
        ...
