"""Run one extraction backend for one file within a resource budget.

In-process backends run in a single-use child process. When the time budget
runs out the child is killed, even in the middle of a page, and nothing of
the backend keeps running. Each child loads its own copy of the backend
library, so concurrent calls never share its global state. External backends
enforce the timeout themselves by killing their process.
"""

from __future__ import annotations

import gc
import logging
import multiprocessing
from multiprocessing.connection import Connection
from typing import Sequence

from .backends import Backend
from .backends.pdftotext import DEFAULT_OPTIONS
from .budget import ResourceBudget
from .config import EXTRACT_START_METHOD
from .registry import MethodRegistry
from .schema import ExtractionResult, FailureReason, FileRef, MethodId
from .utils import (
    BackendError,
    BackendUnavailableError,
    ConfigurationError,
    ExtractionTimeoutError,
    MemoryLimitExceededError,
    UnreadableFileError,
)

logger = logging.getLogger(__name__)

# How long to wait for a finished or killed child to exit.
JOIN_SECONDS = 5.0


def _classify(exc: BaseException) -> ExtractionResult:
    if isinstance(exc, ExtractionTimeoutError):
        return ExtractionResult.failed(FailureReason.TIMEOUT, str(exc))
    if isinstance(exc, (MemoryLimitExceededError, MemoryError)):
        return ExtractionResult.failed(FailureReason.MEMORY_EXCEEDED, str(exc) or "out of memory")
    if isinstance(exc, UnreadableFileError):
        return ExtractionResult.failed(FailureReason.UNREADABLE, str(exc))
    if isinstance(exc, BackendUnavailableError):
        return ExtractionResult.failed(FailureReason.BACKEND_UNAVAILABLE, str(exc))
    return ExtractionResult.failed(FailureReason.BACKEND_ERROR, f"{type(exc).__name__}: {exc}")


def _release(backend: Backend) -> None:
    # PyMuPDF keeps decoded page objects (images included) alive after
    # text extraction; drop them and collect cycles after every run.
    try:
        backend.release_memory()
    except Exception as exc:
        logger.debug("release_memory failed for %s: %s", backend.method_id.value, exc)
    gc.collect()


def _extract_in_child(
    backend: Backend,
    pdf_path: str,
    memory_limit_bytes: int | None,
    conn: Connection,
) -> None:
    """Child process entry point: extract, release, send back the result."""
    try:
        text = backend.extract_text(pdf_path, memory_limit_bytes=memory_limit_bytes)
        result = ExtractionResult.ok(text or "")
    except Exception as exc:
        result = _classify(exc)
    finally:
        _release(backend)
    conn.send(result)
    conn.close()


class ExtractionInvoker:
    """Dispatch extraction to the backend selected in a :class:`MethodRegistry`.

    The invoker holds no per-call state, so one instance can serve
    concurrent callers; every call gets its own child process and deadline.
    """

    def __init__(
        self,
        registry: MethodRegistry,
        pdftotext_path: str | None = None,
        pdftotext_options: Sequence[str] = DEFAULT_OPTIONS,
        start_method: str = EXTRACT_START_METHOD,
    ) -> None:
        self.registry = registry
        self.pdftotext_path = pdftotext_path
        self.pdftotext_options = tuple(pdftotext_options)
        try:
            self._mp_context = multiprocessing.get_context(start_method)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown process start method: {start_method!r}") from exc

    def extract(
        self,
        method_id: MethodId | str,
        file_ref: FileRef,
        budget: ResourceBudget,
    ) -> ExtractionResult:
        """Extract text from *file_ref*; never raises."""
        backend = None
        if method_id != MethodId.DISABLED and self.registry.is_enabled(method_id):
            backend = self.registry.get_backend(method_id)
        if backend is None:
            name = getattr(method_id, "value", method_id)
            result = ExtractionResult.failed(
                FailureReason.BACKEND_UNAVAILABLE, f"Indexing method {name} is not available"
            )
            self._log_failure(file_ref, result)
            return result

        try:
            if backend.in_process:
                result = self._run_in_process(backend, file_ref, budget)
            else:
                text = backend.extract_text(
                    file_ref.path,
                    tool_path=self.pdftotext_path,
                    tool_options=self.pdftotext_options,
                    timeout_seconds=budget.max_execution_seconds,
                )
                result = ExtractionResult.ok(text or "")
        except Exception as exc:
            result = _classify(exc)

        if not result.succeeded:
            self._log_failure(file_ref, result)
        return result

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _run_in_process(
        self, backend: Backend, file_ref: FileRef, budget: ResourceBudget
    ) -> ExtractionResult:
        reader, writer = self._mp_context.Pipe(duplex=False)
        proc = self._mp_context.Process(
            target=_extract_in_child,
            args=(backend, str(file_ref.path), budget.max_memory_bytes, writer),
            name="pdf-indexer-extract",
            daemon=True,
        )
        try:
            proc.start()
        except Exception:
            reader.close()
            raise
        finally:
            # Only the child writes; closing our end lets recv() see EOF if it dies.
            writer.close()

        try:
            if not reader.poll(budget.max_execution_seconds):
                proc.kill()
                raise ExtractionTimeoutError(
                    f"Extraction exceeded {budget.max_execution_seconds} seconds"
                )
            try:
                return reader.recv()
            except EOFError:
                proc.join(JOIN_SECONDS)
                raise BackendError(
                    f"Extraction process exited with code {proc.exitcode}"
                ) from None
        finally:
            reader.close()
            self._reap(proc)

    @staticmethod
    def _reap(proc: multiprocessing.process.BaseProcess) -> None:
        proc.join(JOIN_SECONDS)
        if proc.is_alive():
            logger.warning("Extraction process %s did not exit; killing it", proc.pid)
            proc.kill()
            proc.join()
        proc.close()

    @staticmethod
    def _log_failure(file_ref: FileRef, result: ExtractionResult) -> None:
        failure = result.failure
        logger.error(
            "PDF extraction error for file at %s: %s%s",
            file_ref.path,
            failure.reason.value,
            f" ({failure.message})" if failure.message else "",
        )
