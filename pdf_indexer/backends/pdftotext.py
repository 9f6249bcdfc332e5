"""poppler ``pdftotext`` based PDF text extraction (external process)."""

from __future__ import annotations

import os
import signal
import subprocess
from pathlib import Path
from typing import Sequence

from ..schema import MethodId
from ..utils import (
    BackendError,
    BackendUnavailableError,
    ExtractionTimeoutError,
    UnreadableFileError,
    check_binary_exists,
    ensure_readable,
)

DEFAULT_BINARY = "pdftotext"
DEFAULT_OPTIONS = ("nopgbrk",)
DEFAULT_TIMEOUT_SECONDS = 60

# pdftotext exit codes: 1 = error opening PDF, 3 = PDF permissions error
_UNREADABLE_EXIT_CODES = {1, 3}

_POSIX = os.name == "posix"


def _kill(proc: subprocess.Popen) -> None:
    """Kill the tool and anything it spawned."""

    if _POSIX:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
            return
        except ProcessLookupError:
            return
        except OSError:
            pass
    proc.kill()


def _normalize_options(options: Sequence[str]) -> list[str]:
    """Prefix bare option names with a dash (``nopgbrk`` -> ``-nopgbrk``)."""

    normalized: list[str] = []
    for option in options:
        option = option.strip()
        if not option:
            continue
        normalized.append(option if option.startswith("-") else f"-{option}")
    return normalized


class PdfToTextBackend:
    method_id = MethodId.PDFTOTEXT
    label = "pdftotext (poppler-utils)"
    in_process = False

    def __init__(self, binary: str = DEFAULT_BINARY) -> None:
        self.binary = binary

    def probe(self) -> bool:
        return check_binary_exists(self.binary)

    def build_command(
        self,
        pdf_path: Path,
        tool_path: str | None = None,
        tool_options: Sequence[str] = DEFAULT_OPTIONS,
    ) -> list[str]:
        # "-" writes text to stdout
        return [tool_path or self.binary, *_normalize_options(tool_options), str(pdf_path), "-"]

    def extract_text(
        self,
        pdf_path: str | Path,
        tool_path: str | None = None,
        tool_options: Sequence[str] = DEFAULT_OPTIONS,
        timeout_seconds: int | None = DEFAULT_TIMEOUT_SECONDS,
    ) -> str:
        """Run pdftotext and return its output; the process is killed on timeout."""

        path = ensure_readable(pdf_path)
        command = self.build_command(path, tool_path, tool_options)
        timeout = timeout_seconds or DEFAULT_TIMEOUT_SECONDS
        try:
            proc = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=_POSIX,
            )
        except FileNotFoundError as exc:
            raise BackendUnavailableError(f"pdftotext binary not found: {command[0]}") from exc
        except OSError as exc:
            raise BackendError(f"Could not run pdftotext: {exc}") from exc

        with proc:
            try:
                stdout, stderr_raw = proc.communicate(timeout=timeout)
            except subprocess.TimeoutExpired as exc:
                _kill(proc)
                proc.communicate()
                raise ExtractionTimeoutError(
                    f"pdftotext did not finish within {timeout} seconds"
                ) from exc

        stderr = stderr_raw.decode("utf-8", errors="replace").strip()
        if proc.returncode in _UNREADABLE_EXIT_CODES:
            raise UnreadableFileError(stderr or f"pdftotext exit code {proc.returncode}")
        if proc.returncode != 0:
            raise BackendError(stderr or f"pdftotext exit code {proc.returncode}")

        content = stdout.decode("utf-8", errors="replace")
        return content.replace("\r\n", "\n").strip()

    def release_memory(self) -> None:
        # Nothing is retained in-process.
        return None
