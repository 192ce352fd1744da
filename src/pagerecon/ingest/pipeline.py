"""High level ingestion pipeline entry point."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..config import Settings
from ..errors import PageReconError
from ..logging_config import get_ingest_audit_logger
from ..mapping.chunk_mapper import ChunkPageMapper
from ..mapping.sentence_mapper import SentencePageMapper
from ..pages.reconciler import ContextualReconciler, ReconciliationStats, build_page_table, document_text
from ..pages.resolver import LogicalPageResolver
from ..store import BatchWriter, ChunkStore, InMemoryChunkStore
from .chunking import ChunkingConfig, FixedWindowChunker
from .extractors import PageTextSource, extract_page_texts, open_pdf_source
from .models import ChunkMetadata, Document, DocumentChunk, PageContent
from .normalization import normalize_text

LOGGER = logging.getLogger(__name__)

SourceOpener = Callable[[Document], PageTextSource]


@dataclass(slots=True)
class IngestPipelineConfig:
    chunk_chars: int = 2000
    overlap_chars: int = 200
    window_size: int = 10
    batch_size: int = 100
    max_retries: int = 3
    backoff_seconds: float = 0.5
    extract_workers: int = 4

    @classmethod
    def from_settings(cls, settings: Settings) -> "IngestPipelineConfig":
        return cls(
            chunk_chars=settings.chunk_chars,
            overlap_chars=settings.overlap_chars,
            window_size=settings.window_size,
            batch_size=settings.store_batch_size,
            max_retries=settings.store_max_retries,
            backoff_seconds=settings.store_backoff_seconds,
            extract_workers=settings.extract_workers,
        )


@dataclass(slots=True)
class IngestReport:
    """Outcome of processing a single document."""

    document_id: str
    mode: str
    status: str = "ok"
    page_count: int = 0
    resolved_pages: int = 0
    chunk_count: int = 0
    written_chunks: int = 0
    duration_seconds: float = 0.0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def _default_opener(document: Document) -> PageTextSource:
    return open_pdf_source(document.source)


class IngestPipeline:
    """Extract, reconcile, chunk and map documents, then persist chunk records.

    :meth:`ingest` builds chunk records from scratch while :meth:`backfill`
    re-maps chunks already in the store. Both go through
    :meth:`build_reconciled_pages` and :meth:`map_chunk`, so the page table and
    the page assignment rules are identical for the two paths.
    """

    def __init__(
        self,
        config: Optional[IngestPipelineConfig] = None,
        store: Optional[ChunkStore] = None,
        *,
        resolver: Optional[LogicalPageResolver] = None,
        reconciler: Optional[ContextualReconciler] = None,
        chunk_mapper: Optional[ChunkPageMapper] = None,
        sentence_mapper: Optional[SentencePageMapper] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or IngestPipelineConfig()
        self.store: ChunkStore = store if store is not None else InMemoryChunkStore()
        self.reconciler = reconciler or ContextualReconciler(resolver, window_size=self.config.window_size)
        self.chunk_mapper = chunk_mapper or ChunkPageMapper()
        self.sentence_mapper = sentence_mapper or SentencePageMapper(self.chunk_mapper)
        self.chunker = FixedWindowChunker(
            ChunkingConfig(chunk_chars=self.config.chunk_chars, overlap_chars=self.config.overlap_chars)
        )
        self.writer = BatchWriter(
            self.store,
            batch_size=self.config.batch_size,
            max_retries=self.config.max_retries,
            backoff_seconds=self.config.backoff_seconds,
            sleep=sleep,
        )
        self.audit_logger = get_ingest_audit_logger()

    def build_reconciled_pages(self, source: PageTextSource) -> Tuple[List[PageContent], ReconciliationStats]:
        """Extract every page and resolve printed numbers for the whole table."""

        texts = extract_page_texts(source, max_workers=self.config.extract_workers)
        pages = build_page_table([normalize_text(text) for text in texts])
        stats = self.reconciler.resolve_pages(pages)
        return pages, stats

    def map_chunk(
        self,
        document: Document,
        chunk_index: int,
        content: str,
        start: int,
        end: int,
        pages: Sequence[PageContent],
    ) -> DocumentChunk:
        assignment = self.chunk_mapper.map_chunk(start, end, pages, content)
        sentences, sentence_pages = self.sentence_mapper.map_sentences(content, start, end, pages)
        metadata = ChunkMetadata(
            document_id=document.document_id,
            file_name=Path(document.source).name,
            chunk_index=chunk_index,
            char_start=start,
            char_end=end,
            physical_page=assignment.physical_page,
            logical_page=assignment.logical_page,
            sentences=sentences,
            sentence_page_map=sentence_pages,
        )
        return DocumentChunk(content=content, metadata=metadata)

    def map_chunk_records(self, document: Document, pages: Sequence[PageContent]) -> List[DocumentChunk]:
        text = document_text(pages)
        return [
            self.map_chunk(document, index, content, start, end, pages)
            for index, (content, start, end) in enumerate(self.chunker.chunk(text))
        ]

    def ingest(self, document: Document, source: PageTextSource) -> IngestReport:
        """Process one opened document and write its chunk records.

        Storage failures propagate as :class:`ChunkStoreUnavailableError`.
        """

        start_time = time.perf_counter()
        LOGGER.info("Ingesting document %s (%s)", document.document_id, document.source)
        document.page_count = source.page_count
        pages, stats = self.build_reconciled_pages(source)
        chunks = self.map_chunk_records(document, pages)
        LOGGER.info("Generated %s chunks for document %s", len(chunks), document.document_id)
        written = self.writer.write(document, chunks)

        report = IngestReport(
            document_id=document.document_id,
            mode="ingest",
            page_count=len(pages),
            resolved_pages=stats.resolved,
            chunk_count=len(chunks),
            written_chunks=written,
            duration_seconds=time.perf_counter() - start_time,
        )
        self._audit(report)
        return report

    def backfill(self, document: Document, source: PageTextSource) -> IngestReport:
        """Re-map stored chunks of ``document`` against a freshly reconciled page table.

        Chunk content and offsets are left untouched; only records whose page
        metadata changed are written back, so a second run writes nothing.
        """

        start_time = time.perf_counter()
        existing = self.store.get_chunks(document.document_id)
        LOGGER.info("Backfilling %s stored chunks for document %s", len(existing), document.document_id)
        document.page_count = source.page_count
        pages, stats = self.build_reconciled_pages(source)

        changed: List[DocumentChunk] = []
        for chunk in existing:
            meta = chunk.metadata
            remapped = self.map_chunk(document, meta.chunk_index, chunk.content, meta.char_start, meta.char_end, pages)
            remapped.metadata.file_name = meta.file_name or remapped.metadata.file_name
            if remapped.metadata != meta:
                changed.append(remapped)
        written = self.writer.write(document, changed) if changed else 0

        report = IngestReport(
            document_id=document.document_id,
            mode="backfill",
            page_count=len(pages),
            resolved_pages=stats.resolved,
            chunk_count=len(existing),
            written_chunks=written,
            duration_seconds=time.perf_counter() - start_time,
        )
        self._audit(report)
        return report

    def ingest_many(
        self,
        documents: Iterable[Document],
        opener: Optional[SourceOpener] = None,
        *,
        backfill: bool = False,
    ) -> List[IngestReport]:
        """Process documents one after another, isolating failures per document."""

        opener = opener or _default_opener
        reports: List[IngestReport] = []
        for document in documents:
            try:
                source = opener(document)
                if backfill:
                    report = self.backfill(document, source)
                else:
                    report = self.ingest(document, source)
            except PageReconError as error:
                LOGGER.error("Ingestion of document %s failed: %s", document.document_id, error)
                report = IngestReport(
                    document_id=document.document_id,
                    mode="backfill" if backfill else "ingest",
                    status="failed",
                    error=str(error),
                )
                self._audit(report)
            reports.append(report)

        failed = sum(1 for report in reports if not report.ok)
        LOGGER.info("Processed %s documents (%s failed)", len(reports), failed)
        return reports

    def _audit(self, report: IngestReport) -> None:
        self.audit_logger.info(
            {
                "event": report.mode,
                "document_id": report.document_id,
                "status": report.status,
                "pages": report.page_count,
                "resolved_pages": report.resolved_pages,
                "chunks": report.chunk_count,
                "written": report.written_chunks,
                "duration_ms": round(report.duration_seconds * 1000.0, 3),
                "error": report.error,
            }
        )
