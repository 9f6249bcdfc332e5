"""PDF text extraction for search indexing."""

from .merge import merge_index_value
from .pipeline import PdfIndexer
from .schema import DiscardPolicy, FileRef, IndexingConfig, MethodId

__all__ = ["DiscardPolicy", "FileRef", "IndexingConfig", "MethodId", "PdfIndexer", "merge_index_value"]

__version__ = "0.1.0"
