"""In-process PDF text extraction using PyMuPDF (fitz).

No JVM or external binary: text is read page by page inside the interpreter.
The decode-memory ceiling is checked against MuPDF's object store after every
page. The invoker runs this backend in a child process, so a timeout kills
the whole process rather than waiting for the current page to finish.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..schema import MethodId
from ..utils import (
    BackendUnavailableError,
    MemoryLimitExceededError,
    UnreadableFileError,
    ensure_readable,
)

logger = logging.getLogger(__name__)

# Try importing PyMuPDF; if missing, the backend reports itself unavailable.
try:
    import fitz  # PyMuPDF

    _FITZ_AVAILABLE = True
except ImportError:
    fitz = None
    _FITZ_AVAILABLE = False
    logger.info("PyMuPDF not installed; pymupdf indexing method disabled")


def _store_size() -> int:
    """Bytes currently held in MuPDF's global object store."""
    # A property on older PyMuPDF releases, a method on newer ones.
    try:
        size = fitz.TOOLS.store_size
        return int(size() if callable(size) else size)
    except (AttributeError, TypeError, ValueError):
        return 0


def _text_flags() -> int:
    # Plain text flags leave out image blocks, so decoded images are not kept.
    return getattr(fitz, "TEXTFLAGS_TEXT", 0)


class PyMuPDFBackend:
    method_id = MethodId.PYMUPDF
    label = "PyMuPDF"
    in_process = True

    def probe(self) -> bool:
        return _FITZ_AVAILABLE

    def extract_text(
        self,
        pdf_path: str | Path,
        memory_limit_bytes: int | None = None,
    ) -> str:
        """Extract embedded text from every page, joined by newlines.

        Raises:
            UnreadableFileError: the file cannot be opened or is encrypted.
            MemoryLimitExceededError: decoded data exceeded ``memory_limit_bytes``.
        """
        if not _FITZ_AVAILABLE:
            raise BackendUnavailableError("PyMuPDF is not installed")

        path = ensure_readable(pdf_path)
        try:
            doc = fitz.open(str(path), filetype="pdf")
        except Exception as exc:
            raise UnreadableFileError(f"Cannot open PDF: {exc}") from exc

        parts: list[str] = []
        used = 0
        try:
            if doc.needs_pass:
                raise UnreadableFileError("PDF is encrypted")
            for i, page in enumerate(doc):
                text = page.get_text("text", flags=_text_flags())
                used += len(text.encode("utf-8"))
                if memory_limit_bytes and used + _store_size() > memory_limit_bytes:
                    raise MemoryLimitExceededError(
                        f"Decoding page {i + 1} exceeded {memory_limit_bytes} bytes"
                    )
                if text.strip():
                    parts.append(text.strip())
        finally:
            doc.close()
        return "\n".join(parts)

    def release_memory(self) -> None:
        if not _FITZ_AVAILABLE:
            return
        # MuPDF keeps decoded objects (images included) in its store after
        # the document is closed; empty it.
        try:
            fitz.TOOLS.store_shrink(100)
        except AttributeError:
            logger.debug("fitz.TOOLS.store_shrink unavailable")
