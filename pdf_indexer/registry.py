"""Registry of extraction methods and their availability.

Backends are probed exactly once, when the registry is built; the results
are immutable for the lifetime of the registry.
"""

from __future__ import annotations

import logging
from typing import Iterable

from .backends import Backend, default_backends
from .schema import ExtractionMethod, MethodId

logger = logging.getLogger(__name__)

DISABLED_METHOD = ExtractionMethod(
    id=MethodId.DISABLED,
    label="Disabled",
    enabled=True,
    in_process=False,
)

_METHOD_NOTES = {
    MethodId.PDFTOTEXT: "pdftotext requires the poppler-utils package on the operating system.",
}


def _safe_probe(backend: Backend) -> bool:
    try:
        return bool(backend.probe())
    except Exception as exc:
        logger.info("Probe for %s failed: %s", backend.method_id.value, exc)
        return False


class MethodRegistry:
    """Ordered, probed set of extraction methods, ``disabled`` first."""

    def __init__(self, backends: Iterable[Backend]) -> None:
        self._backends: dict[MethodId, Backend] = {}
        methods = [DISABLED_METHOD]
        for backend in backends:
            if backend.method_id in self._backends or backend.method_id == MethodId.DISABLED:
                raise ValueError(f"Duplicate or reserved method id: {backend.method_id.value}")
            enabled = _safe_probe(backend)
            if not enabled:
                logger.info("%s not available; indexing method disabled", backend.label)
            self._backends[backend.method_id] = backend
            methods.append(
                ExtractionMethod(
                    id=backend.method_id,
                    label=backend.label,
                    enabled=enabled,
                    in_process=backend.in_process,
                    notes=_METHOD_NOTES.get(backend.method_id),
                )
            )
        self._methods: tuple[ExtractionMethod, ...] = tuple(methods)
        self._enabled = frozenset(m.id for m in self._methods if m.enabled)

    def list_methods(self) -> list[ExtractionMethod]:
        return list(self._methods)

    def is_enabled(self, method_id: MethodId | str) -> bool:
        try:
            return MethodId(method_id) in self._enabled
        except ValueError:
            return False

    def count(self) -> int:
        """Number of enabled real methods (``disabled`` not included)."""
        return len(self._enabled - {MethodId.DISABLED})

    def effective_method(self, method_id: MethodId | str) -> MethodId:
        """Return *method_id* if usable, otherwise fall back to ``disabled``."""
        if self.is_enabled(method_id):
            return MethodId(method_id)
        logger.debug("Indexing method %s not enabled; using disabled", method_id)
        return MethodId.DISABLED

    def get_backend(self, method_id: MethodId | str) -> Backend | None:
        try:
            return self._backends.get(MethodId(method_id))
        except ValueError:
            return None


def default_registry(pdftotext_path: str | None = None) -> MethodRegistry:
    """Build a registry over the shipped PyMuPDF and pdftotext backends."""
    return MethodRegistry(default_backends(pdftotext_path=pdftotext_path))
