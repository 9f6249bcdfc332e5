"""Centralized configuration for indexing settings and runtime limits.

All env-driven settings live here so there is a single source of truth.
Import from ``pdf_indexer.config`` in cli.py, api.py, etc.
"""

from __future__ import annotations

import os
import sys
from typing import Mapping, overload

from .budget import parse_memory_limit, read_host_limits
from .schema import DiscardPolicy, IndexingConfig, MethodId

ENV_PREFIX = "PDF_INDEXER_"


def _env_bool(name: str, environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return env.get(name, "").strip().lower() in ("1", "true", "yes")


@overload
def _env_int(
    name: str,
    default: int,
    lo: int = ...,
    hi: int = ...,
    environ: Mapping[str, str] | None = ...,
) -> int: ...


@overload
def _env_int(
    name: str,
    default: None,
    lo: int = ...,
    hi: int = ...,
    environ: Mapping[str, str] | None = ...,
) -> int | None: ...


def _env_int(
    name: str,
    default: int | None,
    lo: int = 1,
    hi: int = 10_000,
    environ: Mapping[str, str] | None = None,
) -> int | None:
    env = os.environ if environ is None else environ
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return max(lo, min(hi, int(raw)))
    except (TypeError, ValueError):
        return default


# ---------------------------------------------------------------------------
# Adapter limits
# ---------------------------------------------------------------------------
UPLOAD_MAX_BYTES: int = _env_int(
    "PDF_INDEXER_UPLOAD_MAX_BYTES", default=20 * 1024 * 1024, lo=1, hi=500 * 1024 * 1024,
)
UPLOAD_CHUNK_SIZE: int = 64 * 1024  # 64 KiB streaming chunks
VERBOSE: bool = _env_bool("PDF_INDEXER_VERBOSE")

# multiprocessing start method for the per-call extraction child.
EXTRACT_START_METHOD: str = os.environ.get("PDF_INDEXER_START_METHOD", "").strip() or "spawn"


def load_indexing_config(environ: Mapping[str, str] | None = None) -> IndexingConfig:
    """Build an :class:`IndexingConfig` from ``PDF_INDEXER_*`` variables.

    Unknown method or discard values raise ``ConfigurationError``; numeric
    values that do not parse fall back to their defaults.
    """
    env = os.environ if environ is None else environ

    def get(key: str) -> str:
        return env.get(ENV_PREFIX + key, "").strip()

    options_raw = get("PDFTOTEXT_OPTIONS")
    # pdftotext path and options are deliberately env-only: they end up on a command line.
    return IndexingConfig(
        file_extensions=get("FILE_EXTENSIONS") or "pdf",
        indexing_method=MethodId.parse(get("METHOD") or None),
        discard_builtin_index=DiscardPolicy.parse(get("DISCARD_BUILTIN") or None),
        max_file_size=_env_int(
            ENV_PREFIX + "MAX_FILE_SIZE", default=None, lo=0, hi=2**62, environ=env,
        ),
        pymupdf_memory_limit=parse_memory_limit(get("PYMUPDF_MEMORY_LIMIT")),
        pdftotext_timeout=_env_int(
            ENV_PREFIX + "PDFTOTEXT_TIMEOUT", default=60, lo=1, hi=86_400, environ=env,
        ),
        pdftotext_path=get("PDFTOTEXT_PATH") or None,
        pdftotext_options=options_raw.split() if options_raw else ["nopgbrk"],
    )


def log_startup_config(config: IndexingConfig | None = None) -> None:
    """Print one startup line summarising active configuration."""
    config = config or load_indexing_config()
    host = read_host_limits()
    msg = (
        f"PDF indexer config: METHOD={config.indexing_method.value} "
        f"FILE_EXTENSIONS={config.file_extensions!r} "
        f"DISCARD_BUILTIN={config.discard_builtin_index.value} "
        f"MAX_FILE_SIZE={config.max_file_size} "
        f"PYMUPDF_MEMORY_LIMIT={config.pymupdf_memory_limit} "
        f"PDFTOTEXT_TIMEOUT={config.pdftotext_timeout} "
        f"HOST_MAX_EXECUTION_TIME={host.max_execution_seconds} "
        f"HOST_MEMORY_LIMIT={host.memory_limit_bytes} "
        f"START_METHOD={EXTRACT_START_METHOD}"
    )
    print(msg, flush=True)
    sys.stderr.write(msg + "\n")
    sys.stderr.flush()
