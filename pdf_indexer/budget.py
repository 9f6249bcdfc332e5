"""Resource budgets: derive per-extraction time/memory ceilings from host limits and config."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping

try:
    import resource
except ImportError:  # pragma: no cover - not available on Windows
    resource = None

DEFAULT_TIMEOUT_SECONDS = 60

HOST_TIME_LIMIT_ENV = "PDF_INDEXER_HOST_MAX_EXECUTION_TIME"
HOST_MEMORY_LIMIT_ENV = "PDF_INDEXER_HOST_MEMORY_LIMIT"

# Binary units, matching the host's memory-limit notation ("128M", "1g", "512k")
_MEMORY_SUFFIXES = {
    "g": 1024 * 1024 * 1024,
    "m": 1024 * 1024,
    "k": 1024,
}
_MEMORY_LIMIT_RE = re.compile(r"^(\d+)([gmk])$")


@dataclass(frozen=True)
class HostLimits:
    """Limits imposed by the host environment; None means unknown."""

    max_execution_seconds: int | None = None
    memory_limit_bytes: int | None = None


@dataclass(frozen=True)
class ResourceBudget:
    """Effective ceilings applied to a single extraction attempt."""

    max_execution_seconds: int | None = None
    max_memory_bytes: int | None = None


def _positive(value: int | None) -> int | None:
    if value is None:
        return None
    try:
        value = int(value)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def parse_memory_limit(value: str | int | None) -> int | None:
    """Parse a memory-limit string into bytes.

    ``"1048576"`` is bytes, ``"5m"`` is 5 MiB, ``"1G"`` is 1 GiB, ``"512k"`` is
    512 KiB. Empty, non-positive (including ``"-1"``) or unparseable values
    mean no limit is known and return None.
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    raw = value.strip().lower()
    if not raw:
        return None
    match = _MEMORY_LIMIT_RE.match(raw)
    if match:
        parsed = int(match.group(1)) * _MEMORY_SUFFIXES[match.group(2)]
    else:
        try:
            parsed = int(raw)
        except ValueError:
            return None
    return parsed if parsed > 0 else None


def resolve_budget(
    host_time_limit_seconds: int | None,
    host_memory_limit_bytes: int | None,
    configured_timeout_seconds: int | None,
    configured_memory_limit_bytes: int | None,
) -> ResourceBudget:
    """Intersect configured limits with host ceilings.

    The timeout defaults to 60 seconds and is capped by a known host time
    limit. The memory limit is capped by a known host memory limit, and the
    host ceiling itself applies when nothing is configured.
    """
    host_time = _positive(host_time_limit_seconds)
    host_memory = _positive(host_memory_limit_bytes)
    configured_memory = _positive(configured_memory_limit_bytes)

    timeout = _positive(configured_timeout_seconds) or DEFAULT_TIMEOUT_SECONDS
    if host_time is not None:
        timeout = min(timeout, host_time)

    if host_memory is not None:
        memory = min(configured_memory, host_memory) if configured_memory else host_memory
    else:
        memory = configured_memory

    return ResourceBudget(max_execution_seconds=timeout, max_memory_bytes=memory)


def _rlimit_memory() -> int | None:
    if resource is None or not hasattr(resource, "RLIMIT_AS"):
        return None
    try:
        soft, _hard = resource.getrlimit(resource.RLIMIT_AS)
    except (OSError, ValueError):
        return None
    if soft == resource.RLIM_INFINITY:
        return None
    return _positive(soft)


def read_host_limits(environ: Mapping[str, str] | None = None) -> HostLimits:
    """Read host execution-time and memory limits.

    The memory limit falls back to the process address-space rlimit when the
    environment does not set one.
    """
    env = os.environ if environ is None else environ

    raw_time = env.get(HOST_TIME_LIMIT_ENV, "").strip()
    try:
        max_execution = _positive(int(raw_time)) if raw_time else None
    except ValueError:
        max_execution = None

    if HOST_MEMORY_LIMIT_ENV in env:
        memory = parse_memory_limit(env.get(HOST_MEMORY_LIMIT_ENV))
    else:
        memory = _rlimit_memory()

    return HostLimits(max_execution_seconds=max_execution, memory_limit_bytes=memory)
