"""Command-line interface: compute the index value for one file."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .budget import parse_memory_limit
from .config import VERBOSE, load_indexing_config
from .pipeline import PdfIndexer
from .schema import DiscardPolicy, IndexingConfig, MethodId
from .utils import ExtractionError


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""

    parser = argparse.ArgumentParser(
        description="Extract PDF text and merge it with a builtin index value.",
    )
    parser.add_argument("file_path", nargs="?", help="Path to the document file.")
    parser.add_argument(
        "--builtin",
        type=str,
        default="",
        help="Builtin index value produced by the host indexer (default: empty).",
    )
    parser.add_argument(
        "--method",
        type=str,
        default=None,
        choices=[m.value for m in MethodId],
        help="Indexing method. Defaults to PDF_INDEXER_METHOD or 'disabled'.",
    )
    parser.add_argument(
        "--discard",
        type=str,
        default=None,
        metavar="POLICY",
        help="Discard policy: append, discardAlways, discardIfExtracted "
             "(or no, yes, yes_if).",
    )
    parser.add_argument(
        "--extensions",
        type=str,
        default=None,
        help="Space separated list of file extensions to process (default: pdf).",
    )
    parser.add_argument(
        "--max-file-size",
        type=int,
        default=None,
        metavar="BYTES",
        help="Skip files larger than BYTES.",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        metavar="SECONDS",
        help="Extraction timeout in seconds (default: 60, capped by host limit).",
    )
    parser.add_argument(
        "--memory-limit",
        type=str,
        default=None,
        help="Decode memory limit for PyMuPDF, e.g. 1048576, 512k, 30m.",
    )
    parser.add_argument(
        "--list-methods",
        action="store_true",
        help="Print available methods and resolved limits as JSON, then exit.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser


def _apply_overrides(config: IndexingConfig, args: argparse.Namespace) -> IndexingConfig:
    updates: dict = {}
    if args.method is not None:
        updates["indexing_method"] = MethodId.parse(args.method)
    if args.discard is not None:
        updates["discard_builtin_index"] = DiscardPolicy.parse(args.discard)
    if args.extensions is not None:
        updates["file_extensions"] = args.extensions
    if args.max_file_size is not None:
        updates["max_file_size"] = args.max_file_size if args.max_file_size > 0 else None
    if args.timeout is not None:
        updates["pdftotext_timeout"] = args.timeout if args.timeout > 0 else None
    if args.memory_limit is not None:
        updates["pymupdf_memory_limit"] = parse_memory_limit(args.memory_limit)
    return config.model_copy(update=updates)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or VERBOSE) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _apply_overrides(load_indexing_config(), args)
        indexer = PdfIndexer(config)
        if args.list_methods:
            print(json.dumps(indexer.describe(), indent=2))
            return 0
        if not args.file_path:
            parser.error("file_path is required unless --list-methods is given")
        print(indexer.index_path(args.file_path, args.builtin))
        return 0
    except ExtractionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:  # pragma: no cover - safety net
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
