"""Per-sentence page assignment inside a chunk."""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

from ..ingest.models import PageContent
from ..ingest.normalization import normalize_for_matching
from .chunk_mapper import ChunkPageMapper, page_at_offset

LOGGER = logging.getLogger(__name__)

_SENTENCE_SPLIT_RE = re.compile(r"[.。!！?？\n]")
MIN_SENTENCE_LENGTH = 10
_IN_CHUNK_PREFIX = 30
_IN_CHUNK_WINDOW = 100
_PAGE_PREFIX = 20


def split_sentences(content: str, min_length: int = MIN_SENTENCE_LENGTH) -> List[str]:
    """Split on sentence terminators and newlines, keeping pieces of ``min_length`` or more."""

    if not content:
        return []
    pieces = (piece.strip() for piece in _SENTENCE_SPLIT_RE.split(content))
    return [piece for piece in pieces if len(piece) >= min_length]


class SentencePageMapper:
    """Refine a chunk's page assignment down to the sentences it contains."""

    def __init__(self, chunk_mapper: Optional[ChunkPageMapper] = None) -> None:
        self.chunk_mapper = chunk_mapper or ChunkPageMapper()

    def map_sentences(
        self,
        content: str,
        start: int,
        end: int,
        pages: Sequence[PageContent],
    ) -> Tuple[List[str], Dict[int, int]]:
        """Return the chunk's sentences and a ``{sentence index: physical page}`` map."""

        if not content or not pages:
            return [], {}
        sentences = split_sentences(content)
        if not sentences:
            return [], {}

        chunk_page: Optional[int] = None
        sentence_pages: Dict[int, int] = {}
        cursor = 0
        for index, sentence in enumerate(sentences):
            position = self._locate_in_chunk(content, sentence, cursor)
            page_number: Optional[int] = None
            if position is not None:
                cursor = position + 1
                page = page_at_offset(start + position, pages)
                if page is not None:
                    page_number = page.physical_index
                else:
                    page_number = self._scan_pages(sentence, pages)
            if page_number is None:
                if chunk_page is None:
                    chunk_page = self.chunk_mapper.map_chunk(start, end, pages, content).physical_page
                page_number = chunk_page
            sentence_pages[index] = page_number
        return sentences, sentence_pages

    @staticmethod
    def _locate_in_chunk(content: str, sentence: str, cursor: int) -> Optional[int]:
        position = content.find(sentence, cursor)
        if position < 0:
            position = content.find(sentence)
        if position >= 0:
            return position

        prefix = normalize_for_matching(sentence)[:_IN_CHUNK_PREFIX]
        if not prefix:
            return None
        for offset in range(0, max(0, len(content) - len(sentence)) + 1):
            window = normalize_for_matching(content[offset : offset + _IN_CHUNK_WINDOW])
            if prefix in window:
                return offset
        return None

    @staticmethod
    def _scan_pages(sentence: str, pages: Sequence[PageContent]) -> Optional[int]:
        prefix = normalize_for_matching(sentence)[:_PAGE_PREFIX]
        if not prefix:
            return None
        for page in pages:
            if prefix in normalize_for_matching(page.text):
                return page.physical_index
        return None
