"""Coverage report over stored sentence page maps."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable

from .ingest.models import DocumentChunk

LOGGER = logging.getLogger(__name__)

GOOD = "good"
PARTIAL = "partial"
INSUFFICIENT = "insufficient"


@dataclass(slots=True)
class DocumentCoverage:
    total: int = 0
    with_sentences: int = 0
    with_sentence_map: int = 0
    with_both: int = 0

    @property
    def coverage_rate(self) -> float:
        return self.with_both / self.total if self.total else 0.0


@dataclass(slots=True)
class SentenceMapReport:
    total_chunks: int = 0
    chunks_with_sentences: int = 0
    chunks_with_sentence_map: int = 0
    chunks_with_both: int = 0
    total_sentences: int = 0
    mapped_sentences: int = 0
    documents: Dict[str, DocumentCoverage] = field(default_factory=dict)

    @property
    def coverage_rate(self) -> float:
        return self.chunks_with_both / self.total_chunks if self.total_chunks else 0.0

    @property
    def mapping_rate(self) -> float:
        return self.mapped_sentences / self.total_sentences if self.total_sentences else 0.0

    @property
    def verdict(self) -> str:
        if self.coverage_rate >= 0.9 and self.mapping_rate >= 0.8:
            return GOOD
        if self.coverage_rate >= 0.5 and self.mapping_rate >= 0.5:
            return PARTIAL
        return INSUFFICIENT

    @property
    def passed(self) -> bool:
        return self.verdict != INSUFFICIENT


def validate_sentence_maps(chunks: Iterable[DocumentChunk]) -> SentenceMapReport:
    """Count how many chunks carry sentences and a sentence page map, overall and per file."""

    report = SentenceMapReport()
    for chunk in chunks:
        meta = chunk.metadata
        doc_stats = report.documents.setdefault(meta.file_name or "unknown", DocumentCoverage())
        report.total_chunks += 1
        doc_stats.total += 1

        has_sentences = bool(meta.sentences)
        has_map = bool(meta.sentence_page_map)
        if has_sentences:
            report.chunks_with_sentences += 1
            report.total_sentences += len(meta.sentences)
            doc_stats.with_sentences += 1
        if has_map:
            report.chunks_with_sentence_map += 1
            report.mapped_sentences += len(meta.sentence_page_map)
            doc_stats.with_sentence_map += 1
        if has_sentences and has_map:
            report.chunks_with_both += 1
            doc_stats.with_both += 1

    LOGGER.info(
        "Sentence map coverage %.1f%%, mapping rate %.1f%% over %s chunks: %s",
        report.coverage_rate * 100,
        report.mapping_rate * 100,
        report.total_chunks,
        report.verdict,
    )
    return report
