"""Data models shared by the reconciliation engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(slots=True)
class Document:
    """A source document and its physical page count."""

    document_id: str
    source: str
    page_count: int = 0


@dataclass(slots=True)
class PageContent:
    """Text extracted from one physical page and its range in the document stream.

    ``start_offset``/``end_offset`` delimit the page inside the concatenated
    document text; ranges of consecutive pages are contiguous. ``logical_number``
    is the printed page number once recovered.
    """

    physical_index: int
    text: str
    start_offset: int
    end_offset: int
    logical_number: Optional[int] = None
    pattern_kind: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.logical_number is not None and self.logical_number != self.physical_index

    @property
    def effective_logical_number(self) -> int:
        return self.logical_number if self.logical_number is not None else self.physical_index

    def contains_offset(self, offset: int) -> bool:
        return self.start_offset <= offset < self.end_offset


@dataclass(frozen=True, slots=True)
class Candidate:
    """A single pattern's proposed printed number for a page."""

    value: int
    confidence: float
    pattern_kind: str


@dataclass(frozen=True, slots=True)
class PageAssignment:
    physical_page: int
    logical_page: int


@dataclass(frozen=True, slots=True)
class Sentence:
    """A sentence of a chunk and the physical page it was found on."""

    index: int
    text: str
    physical_page: int


@dataclass(slots=True)
class ChunkMetadata:
    """Metadata attached to an individual chunk."""

    document_id: str
    file_name: str
    chunk_index: int
    char_start: int
    char_end: int
    physical_page: int = 1
    logical_page: int = 1
    sentences: List[str] = field(default_factory=list)
    sentence_page_map: Dict[int, int] = field(default_factory=dict)

    def sentence_records(self) -> List[Sentence]:
        """Pair each sentence with its mapped page, defaulting to the chunk's page."""

        return [
            Sentence(index=index, text=text, physical_page=self.sentence_page_map.get(index, self.physical_page))
            for index, text in enumerate(self.sentences)
        ]


@dataclass(slots=True)
class DocumentChunk:
    """Container that pairs chunk text with associated metadata."""

    content: str
    metadata: ChunkMetadata

    @property
    def chunk_id(self) -> str:
        meta = self.metadata
        return f"{meta.document_id}:{meta.chunk_index}:{meta.char_start}:{meta.char_end}"
