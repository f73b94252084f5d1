"""Indexing Application Services"""

from .build_pass import BuildResult, build_document_index
from .document_store import DocumentState, DocumentStore
from .indexing_service import IndexingService
from .query_engine import QueryEngine, format_signature

__all__ = [
    "BuildResult",
    "DocumentState",
    "DocumentStore",
    "IndexingService",
    "QueryEngine",
    "build_document_index",
    "format_signature",
]
