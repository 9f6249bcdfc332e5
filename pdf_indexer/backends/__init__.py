"""Pluggable extraction backends.

Each module in this package wraps one way of turning a PDF into plain text
behind the :class:`~pdf_indexer.backends.base.Backend` interface. Backends
report their own availability through ``probe()``; a backend whose runtime
dependency is missing is simply disabled and the pipeline continues without it.
"""

from __future__ import annotations

from .base import Backend
from .pdftotext import PdfToTextBackend
from .pymupdf import PyMuPDFBackend

__all__ = ["Backend", "PdfToTextBackend", "PyMuPDFBackend", "default_backends"]


def default_backends(pdftotext_path: str | None = None) -> list[Backend]:
    """Return the shipped backends in display order."""
    pdftotext = PdfToTextBackend(binary=pdftotext_path) if pdftotext_path else PdfToTextBackend()
    return [PyMuPDFBackend(), pdftotext]
