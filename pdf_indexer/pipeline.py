"""Indexing pipeline: eligibility -> method selection -> extraction -> merge."""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

from .budget import HostLimits, ResourceBudget, read_host_limits, resolve_budget
from .eligibility import is_eligible
from .invoker import ExtractionInvoker
from .merge import merge_index_value
from .registry import MethodRegistry, default_registry
from .schema import FileRef, IndexingConfig, MethodId

logger = logging.getLogger(__name__)


class PdfIndexer:
    """Per-file entry point called by the host indexer.

    Budget and effective method are resolved once here; host limits and
    the configured selection do not change during an indexing run.
    """

    def __init__(
        self,
        config: IndexingConfig | None = None,
        registry: MethodRegistry | None = None,
        host_limits: HostLimits | None = None,
        invoker: ExtractionInvoker | None = None,
    ) -> None:
        self.config = config or IndexingConfig()
        self.registry = registry or default_registry(pdftotext_path=self.config.pdftotext_path)
        self.host_limits = host_limits if host_limits is not None else read_host_limits()
        self.budget: ResourceBudget = resolve_budget(
            self.host_limits.max_execution_seconds,
            self.host_limits.memory_limit_bytes,
            self.config.pdftotext_timeout,
            self.config.pymupdf_memory_limit,
        )
        self.method: MethodId = self.registry.effective_method(self.config.indexing_method)
        if self.method != self.config.indexing_method:
            logger.warning(
                "Indexing method %s is not available; PDF extraction disabled",
                self.config.indexing_method.value,
            )
        self.invoker = invoker or ExtractionInvoker(
            self.registry,
            pdftotext_path=self.config.pdftotext_path,
            pdftotext_options=self.config.pdftotext_options,
        )

    @property
    def enabled(self) -> bool:
        return self.method != MethodId.DISABLED

    def on_get_index_value(self, file_ref: FileRef, builtin: str | None) -> str:
        """Return the index value for *file_ref*, given the host's builtin value."""
        builtin = builtin or ""
        if not self.enabled:
            return builtin
        if not is_eligible(file_ref, self.config.file_extensions, self.config.max_file_size):
            return builtin
        result = self.invoker.extract(self.method, file_ref, self.budget)
        return merge_index_value(builtin, result, self.config.discard_builtin_index)

    def index_path(self, path: str | Path, builtin: str | None = "") -> str:
        return self.on_get_index_value(FileRef.from_path(path), builtin)

    def describe(self) -> dict[str, Any]:
        """Summarise methods, effective selection and limits for display."""
        methods = [m.model_dump(mode="json") for m in self.registry.list_methods()]
        notes = []
        if not self.registry.count():
            notes.append(
                "There are currently no indexing backends available. Install PyMuPDF "
                "or the poppler-utils pdftotext tool."
            )
        if self.host_limits.max_execution_seconds:
            notes.append(
                f"Host max execution time is {self.host_limits.max_execution_seconds} "
                "seconds; the extraction timeout cannot be higher."
            )
        if self.host_limits.memory_limit_bytes:
            notes.append(
                f"Host memory limit is {self.host_limits.memory_limit_bytes} bytes = "
                f"{self.host_limits.memory_limit_bytes // (1024 * 1024)} MiB; the decode "
                "memory limit cannot be higher."
            )
        return {
            "methods": methods,
            "configured_method": self.config.indexing_method.value,
            "effective_method": self.method.value,
            "enabled_method_count": self.registry.count(),
            "file_extensions": self.config.file_extensions,
            "max_file_size": self.config.max_file_size,
            "discard_builtin_index": self.config.discard_builtin_index.value,
            "budget": asdict(self.budget),
            "host_limits": asdict(self.host_limits),
            "notes": notes,
        }
