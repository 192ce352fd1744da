"""Repair unresolved printed page numbers from already resolved neighbours."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..ingest.models import PageContent
from .resolver import LogicalPageResolver, PageContext

LOGGER = logging.getLogger(__name__)

DEFAULT_SEPARATOR = "\n\n"


@dataclass(frozen=True, slots=True)
class ReconciliationStats:
    total: int
    resolved: int

    @property
    def rate(self) -> float:
        return self.resolved / self.total if self.total else 0.0


def build_page_table(texts: Sequence[str], separator: str = DEFAULT_SEPARATOR) -> List[PageContent]:
    """Lay out page texts in one document stream with contiguous offsets.

    Each page's range covers its own text and the separator that follows it,
    matching :func:`document_text`.
    """

    pages: List[PageContent] = []
    offset = 0
    for index, text in enumerate(texts, start=1):
        text = text or ""
        length = len(text) + (len(separator) if index < len(texts) else 0)
        pages.append(PageContent(physical_index=index, text=text, start_offset=offset, end_offset=offset + length))
        offset += length
    return pages


def document_text(pages: Sequence[PageContent], separator: str = DEFAULT_SEPARATOR) -> str:
    return separator.join(page.text for page in pages)


def summarize(pages: Sequence[PageContent]) -> ReconciliationStats:
    return ReconciliationStats(total=len(pages), resolved=sum(1 for page in pages if page.resolved))


class ContextualReconciler:
    """Resolve a whole page table, retrying failed pages once neighbours are known."""

    def __init__(self, resolver: Optional[LogicalPageResolver] = None, window_size: int = 10) -> None:
        self.resolver = resolver or LogicalPageResolver()
        self.window_size = max(1, window_size)

    def resolve_pages(self, pages: List[PageContent]) -> ReconciliationStats:
        """Run the streaming first pass followed by :meth:`reconcile`.

        Pages are resolved in physical order with the previous resolved page as
        context. A still unresolved predecessor is retried as soon as its
        successor is known, and every ``window_size`` pages the trailing window is
        revisited so late results can repair earlier failures.
        """

        for position, page in enumerate(pages):
            if not page.resolved:
                self._resolve_at(pages, position, include_next=False)
            if position > 0 and not pages[position - 1].resolved:
                self._resolve_at(pages, position - 1)
            if (position + 1) % self.window_size == 0:
                repaired = self._pass(pages, max(0, position + 1 - self.window_size), position + 1)
                if repaired:
                    LOGGER.debug("Window pass ending at page %s repaired %s pages", page.physical_index, repaired)

        self.reconcile(pages)
        stats = summarize(pages)
        LOGGER.info(
            "Printed page numbers recovered for %s/%s pages (%.1f%%)",
            stats.resolved,
            stats.total,
            stats.rate * 100,
        )
        return stats

    def reconcile(self, pages: List[PageContent]) -> int:
        """Repeat whole-document passes until nothing changes; return pages repaired.

        Only unresolved pages are touched, so running this on an already
        reconciled table is a no-op.
        """

        repaired_total = 0
        # Each productive pass resolves at least one page, so len(pages) bounds the loop.
        for _ in range(len(pages) + 1):
            repaired = self._pass(pages, 0, len(pages))
            if not repaired:
                break
            repaired_total += repaired
        if repaired_total:
            LOGGER.info("Whole-document reconciliation repaired %s pages", repaired_total)
        return repaired_total

    def _pass(self, pages: List[PageContent], start: int, stop: int) -> int:
        repaired = 0
        for position in range(start, stop):
            if pages[position].resolved:
                continue
            if self._resolve_at(pages, position):
                repaired += 1
        return repaired

    def _resolve_at(self, pages: List[PageContent], position: int, include_next: bool = True) -> bool:
        page = pages[position]
        context = self._context(pages, position, include_next)
        if page.logical_number is not None and page.logical_number == page.physical_index and context.empty:
            # Nothing new to learn without neighbours.
            return False
        candidate = self.resolver.resolve_candidate(page.text, page.physical_index, context)
        if candidate is None:
            page.logical_number = page.physical_index
            page.pattern_kind = None
            return False
        page.logical_number = candidate.value
        page.pattern_kind = candidate.pattern_kind
        return True

    @staticmethod
    def _context(pages: List[PageContent], position: int, include_next: bool = True) -> PageContext:
        previous = pages[position - 1] if position > 0 else None
        following = pages[position + 1] if include_next and position + 1 < len(pages) else None
        return PageContext(
            previous=previous.logical_number if previous is not None and previous.resolved else None,
            next=following.logical_number if following is not None and following.resolved else None,
        )
