"""Chroma backed chunk store."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..errors import ChunkStoreUnavailableError
from ..ingest.models import ChunkMetadata, Document, DocumentChunk

LOGGER = logging.getLogger(__name__)

DEFAULT_COLLECTION_NAME = "pdf_chunks"


class StatisticalEmbedder:
    """Cheap deterministic embedding; chunk records are fetched by document id, not similarity."""

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        embeddings: List[List[float]] = []
        for text in texts:
            lowered = text.lower()
            tokens = lowered.split()
            length = len(lowered)
            avg_word_len = sum(len(token) for token in tokens) / len(tokens) if tokens else 0.0
            digit_ratio = sum(1 for char in lowered if char.isdigit()) / length if length else 0.0
            embeddings.append([length / 2000.0, avg_word_len / 10.0, digit_ratio, float(len(tokens)) / 500.0])
        return embeddings


def chunk_to_record(document: Document, chunk: DocumentChunk) -> Dict[str, Any]:
    """Flatten chunk metadata into Chroma compatible scalar values."""

    meta = chunk.metadata
    return {
        "document_id": meta.document_id,
        "file_name": meta.file_name,
        "source": document.source,
        "chunk_index": meta.chunk_index,
        "char_start": meta.char_start,
        "char_end": meta.char_end,
        "physical_page": meta.physical_page,
        "logical_page": meta.logical_page,
        "sentences": json.dumps(meta.sentences, ensure_ascii=False),
        "sentence_page_map": json.dumps({str(key): value for key, value in meta.sentence_page_map.items()}),
        "content_length": len(chunk.content),
    }


def record_to_chunk(content: str, record: Dict[str, Any]) -> DocumentChunk:
    sentence_map = json.loads(record.get("sentence_page_map") or "{}")
    metadata = ChunkMetadata(
        document_id=str(record.get("document_id", "")),
        file_name=str(record.get("file_name", "")),
        chunk_index=int(record.get("chunk_index", 0)),
        char_start=int(record.get("char_start", 0)),
        char_end=int(record.get("char_end", len(content))),
        physical_page=int(record.get("physical_page", 1)),
        logical_page=int(record.get("logical_page", 1)),
        sentences=list(json.loads(record.get("sentences") or "[]")),
        sentence_page_map={int(key): int(value) for key, value in sentence_map.items()},
    )
    return DocumentChunk(content=content, metadata=metadata)


class ChromaChunkStore:
    """Persist chunk records in a Chroma collection."""

    def __init__(
        self,
        persist_dir: str | Path,
        *,
        collection_name: str = DEFAULT_COLLECTION_NAME,
        client: Optional[Any] = None,
        embedder: Optional[StatisticalEmbedder] = None,
    ) -> None:
        self.persist_dir = Path(persist_dir)
        self.collection_name = collection_name
        self.embedder = embedder or StatisticalEmbedder()
        try:
            if client is None:
                import chromadb

                self.persist_dir.mkdir(parents=True, exist_ok=True)
                client = chromadb.PersistentClient(path=str(self.persist_dir))
            self._collection = client.get_or_create_collection(name=collection_name)
        except ImportError as exc:
            raise ChunkStoreUnavailableError(
                "CHUNK_STORE=chroma requires the 'chromadb' package to be installed",
                cause=exc,
            ) from exc
        except Exception as exc:
            raise ChunkStoreUnavailableError("Failed to initialise Chroma chunk store", cause=exc) from exc

    def upsert_chunks(self, document: Document, chunks: Sequence[DocumentChunk]) -> List[str]:
        if not chunks:
            return []
        ids = [chunk.chunk_id for chunk in chunks]
        documents = [chunk.content for chunk in chunks]
        metadatas = [chunk_to_record(document, chunk) for chunk in chunks]
        try:
            self._collection.upsert(
                ids=ids,
                embeddings=self.embedder.embed_texts(documents),
                documents=documents,
                metadatas=metadatas,
            )
        except Exception as exc:
            raise ChunkStoreUnavailableError("Failed to upsert chunks into Chroma", cause=exc) from exc
        return ids

    def get_chunks(self, document_id: str) -> List[DocumentChunk]:
        try:
            result = self._collection.get(
                where={"document_id": document_id},
                include=["documents", "metadatas"],
            )
        except Exception as exc:
            raise ChunkStoreUnavailableError("Chroma chunk query failed", cause=exc) from exc
        documents = result.get("documents") or []
        metadatas = result.get("metadatas") or []
        chunks = [record_to_chunk(content or "", dict(meta or {})) for content, meta in zip(documents, metadatas)]
        chunks.sort(key=lambda chunk: chunk.metadata.chunk_index)
        return chunks
