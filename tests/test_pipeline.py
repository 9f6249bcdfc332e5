"""End-to-end tests for pdf_indexer.pipeline with fake backends."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from fakes import FakeBackend

from pdf_indexer.budget import HostLimits
from pdf_indexer.pipeline import PdfIndexer
from pdf_indexer.registry import MethodRegistry
from pdf_indexer.schema import DiscardPolicy, FileRef, IndexingConfig, MethodId
from pdf_indexer.utils import BackendError

NO_HOST_LIMITS = HostLimits()


def _indexer(backend: FakeBackend, host_limits: HostLimits = NO_HOST_LIMITS, **config) -> PdfIndexer:
    config.setdefault("indexing_method", backend.method_id)
    return PdfIndexer(
        IndexingConfig(**config),
        registry=MethodRegistry([backend]),
        host_limits=host_limits,
    )


def _report(size: int = 50, ext: str = "pdf") -> FileRef:
    return FileRef(path=Path(f"/docs/report.{ext}"), ext=ext, size=size)


class TestEndToEnd(unittest.TestCase):
    def test_report_scenario(self) -> None:
        backend = FakeBackend(text="Quarterly results")
        indexer = _indexer(
            backend,
            file_extensions="pdf",
            discard_builtin_index=DiscardPolicy.APPEND,
            pdftotext_timeout=60,
            max_file_size=None,
        )
        self.assertEqual(
            indexer.on_get_index_value(_report(), "report"), "report ... Quarterly results"
        )

    def test_discard_if_extracted(self) -> None:
        backend = FakeBackend(text="Quarterly results")
        indexer = _indexer(backend, discard_builtin_index="yes_if")
        self.assertEqual(indexer.on_get_index_value(_report(), "report"), "Quarterly results")

    def test_failure_returns_builtin(self) -> None:
        """A backend failure is logged and the builtin value is indexed unchanged."""
        backend = FakeBackend(error=BackendError("broken"))
        indexer = _indexer(backend, discard_builtin_index="yes")
        with self.assertLogs("pdf_indexer.invoker", level="ERROR"):
            value = indexer.on_get_index_value(_report(), "report")
        self.assertEqual(value, "report")

    def test_index_path(self) -> None:
        backend = FakeBackend(text="body")
        indexer = _indexer(backend)
        with tempfile.NamedTemporaryFile(suffix=".PDF") as f:
            f.write(b"%PDF-1.4")
            f.flush()
            self.assertEqual(indexer.index_path(f.name, "title"), "title ... body")

    def test_repeated_calls(self) -> None:
        backend = FakeBackend(text="body")
        indexer = _indexer(backend)
        for _ in range(3):
            self.assertEqual(indexer.on_get_index_value(_report(), "t"), "t ... body")
        self.assertEqual(len(backend.calls), 3)


class TestRealPyMuPDF(unittest.TestCase):
    def test_report_with_memory_budget(self) -> None:
        """Real PyMuPDF extraction in the child process with a decode-memory ceiling."""
        fitz = pytest.importorskip("fitz")
        with tempfile.TemporaryDirectory() as tmp:
            pdf = Path(tmp) / "report.pdf"
            doc = fitz.open()
            doc.new_page().insert_text((72, 72), "Quarterly results")
            doc.save(str(pdf))
            doc.close()
            indexer = PdfIndexer(
                IndexingConfig(indexing_method="pymupdf", pymupdf_memory_limit=512 * 1024 * 1024),
                host_limits=NO_HOST_LIMITS,
            )
            self.assertEqual(indexer.method, MethodId.PYMUPDF)
            self.assertEqual(indexer.budget.max_memory_bytes, 512 * 1024 * 1024)
            self.assertEqual(indexer.index_path(pdf, "report"), "report ... Quarterly results")


class TestShortCircuits(unittest.TestCase):
    def test_disabled_returns_builtin_without_invoker(self) -> None:
        invoker = MagicMock()
        indexer = PdfIndexer(
            IndexingConfig(indexing_method="disabled"),
            registry=MethodRegistry([FakeBackend(text="x")]),
            host_limits=NO_HOST_LIMITS,
            invoker=invoker,
        )
        self.assertFalse(indexer.enabled)
        self.assertEqual(indexer.on_get_index_value(_report(), "report"), "report")
        invoker.extract.assert_not_called()

    def test_unavailable_method_behaves_like_disabled(self) -> None:
        """A configured but unavailable method degrades to disabled, not to an error."""
        backend = FakeBackend(text="x", available=False)
        indexer = _indexer(backend, discard_builtin_index="yes")
        self.assertEqual(indexer.method, MethodId.DISABLED)
        self.assertEqual(indexer.on_get_index_value(_report(), "report"), "report")
        self.assertEqual(indexer.on_get_index_value(_report(), ""), "")
        self.assertEqual(backend.calls, [])

    def test_no_backends_at_all(self) -> None:
        indexer = PdfIndexer(
            IndexingConfig(indexing_method="pymupdf"),
            registry=MethodRegistry([]),
            host_limits=NO_HOST_LIMITS,
        )
        self.assertEqual(indexer.on_get_index_value(_report(), "report"), "report")

    def test_ineligible_extension(self) -> None:
        backend = FakeBackend(text="x")
        indexer = _indexer(backend, file_extensions="pdf")
        self.assertEqual(indexer.on_get_index_value(_report(ext="docx"), "report"), "report")
        self.assertEqual(backend.calls, [])

    def test_oversized_file(self) -> None:
        backend = FakeBackend(text="x")
        indexer = _indexer(backend, max_file_size=49)
        self.assertEqual(indexer.on_get_index_value(_report(size=50), "report"), "report")
        self.assertEqual(backend.calls, [])

    def test_none_builtin(self) -> None:
        indexer = PdfIndexer(
            IndexingConfig(), registry=MethodRegistry([]), host_limits=NO_HOST_LIMITS
        )
        self.assertEqual(indexer.on_get_index_value(_report(), None), "")


class TestBudgetResolution(unittest.TestCase):
    def test_budget_resolved_from_host_and_config(self) -> None:
        """Configured limits are capped by the host limits before reaching the backend."""
        backend = FakeBackend(text="x")
        indexer = _indexer(
            backend,
            host_limits=HostLimits(max_execution_seconds=30, memory_limit_bytes=64 * 1024 * 1024),
            pdftotext_timeout=120,
            pymupdf_memory_limit=128 * 1024 * 1024,
        )
        self.assertEqual(indexer.budget.max_execution_seconds, 30)
        self.assertEqual(indexer.budget.max_memory_bytes, 64 * 1024 * 1024)
        indexer.on_get_index_value(_report(), "")
        _path, limits = backend.calls[0]
        self.assertEqual(limits["memory_limit_bytes"], 64 * 1024 * 1024)


class TestDescribe(unittest.TestCase):
    def test_describe_contents(self) -> None:
        backend = FakeBackend(text="x", available=False)
        indexer = _indexer(
            backend, host_limits=HostLimits(max_execution_seconds=30, memory_limit_bytes=1048576)
        )
        info = indexer.describe()
        self.assertEqual(info["configured_method"], "pymupdf")
        self.assertEqual(info["effective_method"], "disabled")
        self.assertEqual(info["enabled_method_count"], 0)
        self.assertEqual([m["id"] for m in info["methods"]], ["disabled", "pymupdf"])
        self.assertEqual(info["budget"]["max_execution_seconds"], 30)
        self.assertTrue(any("no indexing backends" in n for n in info["notes"]))
        self.assertTrue(any("1 MiB" in n for n in info["notes"]))


if __name__ == "__main__":
    unittest.main()
