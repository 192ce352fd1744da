"""Hybrid offset/text matching of chunks to pages."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..ingest.models import PageAssignment, PageContent
from ..ingest.normalization import normalize_for_matching

LOGGER = logging.getLogger(__name__)

FULL_MATCH_SCORE = 100.0
PREFIX_MATCH_SCORE = 50.0
OVERLAP_WEIGHT = 30.0
START_INSIDE_BONUS = 10.0
PREFIX_LENGTH = 100
MIN_PREFIX_SOURCE = 50


def _assignment(page: PageContent) -> PageAssignment:
    return PageAssignment(physical_page=page.physical_index, logical_page=page.effective_logical_number)


def overlap_ratio(start: int, end: int, page: PageContent) -> float:
    """Fraction of ``[start, end)`` covered by ``page``."""

    length = end - start
    if length <= 0:
        return 0.0
    overlap = min(end, page.end_offset) - max(start, page.start_offset)
    return max(0, overlap) / length


def intersecting_pages(start: int, end: int, pages: Sequence[PageContent]) -> List[PageContent]:
    return [page for page in pages if start < page.end_offset and end > page.start_offset]


def page_at_offset(offset: int, pages: Sequence[PageContent]) -> Optional[PageContent]:
    for page in pages:
        if page.contains_offset(offset):
            return page
    return None


class ChunkPageMapper:
    """Assign a chunk to one page among those its offset range intersects.

    When the chunk has enough content, intersecting pages are scored by text
    evidence (verbatim or prefix match) plus overlap; otherwise, or when no
    score reaches ``accept_score``, the page holding the chunk start wins.
    """

    def __init__(self, min_content_length: int = 15, accept_score: float = 50.0) -> None:
        self.min_content_length = min_content_length
        self.accept_score = accept_score

    def map_chunk(
        self,
        start: int,
        end: int,
        pages: Sequence[PageContent],
        content: Optional[str] = None,
    ) -> PageAssignment:
        if not pages:
            return PageAssignment(physical_page=1, logical_page=1)

        candidates = intersecting_pages(start, end, pages)
        if not candidates:
            LOGGER.debug("Chunk %s-%s intersects no page; using the last page", start, end)
            return _assignment(pages[-1])

        if content and len(content) >= self.min_content_length:
            best = self._best_by_text(start, end, candidates, content)
            if best is not None:
                return _assignment(best)

        return _assignment(self._best_by_offset(start, end, candidates))

    def _best_by_text(
        self,
        start: int,
        end: int,
        candidates: Sequence[PageContent],
        content: str,
    ) -> Optional[PageContent]:
        normalized_chunk = normalize_for_matching(content)
        prefix = normalized_chunk[:PREFIX_LENGTH] if len(normalized_chunk) >= MIN_PREFIX_SOURCE else None
        best_page: Optional[PageContent] = None
        best_score = 0.0
        for page in candidates:
            page_text = normalize_for_matching(page.text)
            score = 0.0
            if normalized_chunk and normalized_chunk in page_text:
                score += FULL_MATCH_SCORE
            elif prefix and prefix in page_text:
                score += PREFIX_MATCH_SCORE
            score += overlap_ratio(start, end, page) * OVERLAP_WEIGHT
            if page.contains_offset(start):
                score += START_INSIDE_BONUS
            if score > best_score:
                best_score = score
                best_page = page
        if best_page is not None and best_score >= self.accept_score:
            return best_page
        return None

    @staticmethod
    def _best_by_offset(start: int, end: int, candidates: Sequence[PageContent]) -> PageContent:
        for page in candidates:
            if page.contains_offset(start):
                return page
        for page in candidates:
            if page.start_offset < end <= page.end_offset:
                return page
        best = candidates[0]
        best_ratio = 0.0
        for page in candidates:
            ratio = overlap_ratio(start, end, page)
            if ratio > best_ratio:
                best_ratio = ratio
                best = page
        return best
