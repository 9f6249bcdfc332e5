"""Tests for pdf_indexer.eligibility."""

from __future__ import annotations

import unittest
from pathlib import Path

from pdf_indexer.eligibility import is_eligible, parse_extensions
from pdf_indexer.schema import FileRef


def _ref(ext: str, size: int = 100) -> FileRef:
    return FileRef(path=Path(f"/docs/file.{ext}"), ext=ext, size=size)


class TestParseExtensions(unittest.TestCase):
    def test_space_separated_lowercased_deduplicated(self) -> None:
        self.assertEqual(parse_extensions("pdf PDF  doc pdf"), frozenset({"pdf", "doc"}))

    def test_iterable_and_leading_dot(self) -> None:
        self.assertEqual(parse_extensions([".PDF", "ai", ""]), frozenset({"pdf", "ai"}))


class TestIsEligible(unittest.TestCase):
    def test_extension_case_insensitive(self) -> None:
        self.assertTrue(is_eligible(_ref("PDF"), "pdf doc", None))
        self.assertTrue(is_eligible(_ref("pdf"), "DOC Pdf", None))

    def test_extension_not_allowed(self) -> None:
        self.assertFalse(is_eligible(_ref("txt"), "pdf doc", None))
        self.assertFalse(is_eligible(_ref("pdf"), "", None))

    def test_size_boundary_inclusive(self) -> None:
        self.assertTrue(is_eligible(_ref("pdf", 1000), "pdf", 1000))
        self.assertFalse(is_eligible(_ref("pdf", 1001), "pdf", 1000))

    def test_zero_or_none_ceiling_unconstrained(self) -> None:
        self.assertTrue(is_eligible(_ref("pdf", 10**9), "pdf", 0))
        self.assertTrue(is_eligible(_ref("pdf", 10**9), "pdf", None))


class TestFileRefFromPath(unittest.TestCase):
    def test_missing_file_has_zero_size(self) -> None:
        ref = FileRef.from_path("/nonexistent/report.PDF")
        self.assertEqual(ref.ext, "PDF")
        self.assertEqual(ref.size, 0)


if __name__ == "__main__":
    unittest.main()
