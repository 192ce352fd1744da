"""In-memory chunk store used by default and in tests."""
from __future__ import annotations

import copy
import logging
from typing import Dict, List, Protocol, Sequence

from ..ingest.models import Document, DocumentChunk

LOGGER = logging.getLogger(__name__)


class ChunkStore(Protocol):
    """Persistence boundary for chunk records."""

    def upsert_chunks(self, document: Document, chunks: Sequence[DocumentChunk]) -> List[str]:
        ...

    def get_chunks(self, document_id: str) -> List[DocumentChunk]:
        ...


class InMemoryChunkStore:
    """Keep chunk records per document, keyed by chunk id."""

    def __init__(self) -> None:
        self._documents: Dict[str, Document] = {}
        self._chunks: Dict[str, Dict[str, DocumentChunk]] = {}

    def upsert_chunks(self, document: Document, chunks: Sequence[DocumentChunk]) -> List[str]:
        self._documents[document.document_id] = document
        records = self._chunks.setdefault(document.document_id, {})
        ids: List[str] = []
        for chunk in chunks:
            records[chunk.chunk_id] = copy.deepcopy(chunk)
            ids.append(chunk.chunk_id)
        LOGGER.debug("Stored %s chunks for document %s", len(ids), document.document_id)
        return ids

    def get_chunks(self, document_id: str) -> List[DocumentChunk]:
        records = self._chunks.get(document_id, {})
        chunks = [copy.deepcopy(chunk) for chunk in records.values()]
        chunks.sort(key=lambda chunk: chunk.metadata.chunk_index)
        return chunks

    def get_document(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    def count(self) -> int:
        return sum(len(records) for records in self._chunks.values())
