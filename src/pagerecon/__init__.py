"""Logical page reconciliation for chunked document retrieval."""

from .ingest.models import Candidate, ChunkMetadata, Document, DocumentChunk, PageAssignment, PageContent, Sentence
from .pages.reconciler import ContextualReconciler
from .pages.resolver import LogicalPageResolver, PageContext

__all__ = [
    "Candidate",
    "ChunkMetadata",
    "ContextualReconciler",
    "Document",
    "DocumentChunk",
    "LogicalPageResolver",
    "PageAssignment",
    "PageContent",
    "PageContext",
    "Sentence",
]
