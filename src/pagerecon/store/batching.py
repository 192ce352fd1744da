"""Batched chunk writes with retry and exponential backoff."""
from __future__ import annotations

import logging
import time
from typing import Callable, List, Sequence

from ..errors import ChunkStoreUnavailableError
from ..ingest.models import Document, DocumentChunk
from .memory_store import ChunkStore

LOGGER = logging.getLogger(__name__)


class BatchWriter:
    """Write chunks in fixed-size batches; a batch failing every retry aborts the document."""

    def __init__(
        self,
        store: ChunkStore,
        batch_size: int = 100,
        max_retries: int = 3,
        backoff_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.batch_size = max(1, batch_size)
        self.max_retries = max(0, max_retries)
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def write(self, document: Document, chunks: Sequence[DocumentChunk]) -> int:
        written = 0
        for offset in range(0, len(chunks), self.batch_size):
            batch = chunks[offset : offset + self.batch_size]
            written += len(self._write_batch(document, batch))
            LOGGER.debug("Committed batch of %s chunks for %s (%s total)", len(batch), document.document_id, written)
        return written

    def _write_batch(self, document: Document, batch: Sequence[DocumentChunk]) -> List[str]:
        attempt = 0
        while True:
            try:
                return self.store.upsert_chunks(document, batch)
            except Exception as exc:
                if attempt >= self.max_retries:
                    raise ChunkStoreUnavailableError(
                        f"Chunk batch for document {document.document_id} failed after {attempt + 1} attempts",
                        cause=exc,
                    ) from exc
                delay = self.backoff_seconds * (2**attempt)
                LOGGER.warning(
                    "Chunk batch write failed for %s (attempt %s/%s): %s; retrying in %.2fs",
                    document.document_id,
                    attempt + 1,
                    self.max_retries + 1,
                    exc,
                    delay,
                )
                self._sleep(delay)
                attempt += 1
