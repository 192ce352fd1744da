"""Find the physical page of a cited sentence in the live document."""
from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

from ..ingest.extractors import PageTextSource
from ..ingest.normalization import normalize_for_matching
from .cache import BoundedCache
from .scoring import PageScore, rank_key, score_page, tokenize

LOGGER = logging.getLogger(__name__)

MIN_SENTENCE_LENGTH = 10
CACHE_KEY_LENGTH = 100
WINDOW_RADIUS = 1
ACCEPT_RATIO = 0.2
ACCEPT_SCORE = 100.0

SourceOpener = Callable[[str], PageTextSource]
CacheKey = Tuple[str, str]


class RuntimePageLocator:
    """Re-rank the stored page and its neighbours for a cited sentence.

    ``locate`` never raises: an unreadable document, a failing backend or the
    timeout all return ``fallback_page`` unchanged. Backend calls run on a
    per-lookup thread pool that is abandoned on timeout, so a hung backend
    cannot hold the caller past ``timeout_seconds``.
    """

    def __init__(
        self,
        source_opener: SourceOpener,
        cache: Optional[BoundedCache[CacheKey, int]] = None,
        timeout_seconds: float = 5.0,
    ) -> None:
        self.source_opener = source_opener
        self.cache: BoundedCache[CacheKey, int] = cache if cache is not None else BoundedCache()
        self.timeout_seconds = timeout_seconds

    async def locate(self, document_ref: str, cited_sentence: str, fallback_page: int) -> int:
        normalized = normalize_for_matching(cited_sentence)
        if len(normalized) < MIN_SENTENCE_LENGTH:
            LOGGER.debug("Cited sentence too short for %s; keeping page %s", document_ref, fallback_page)
            return fallback_page

        key = (document_ref, (cited_sentence or "")[:CACHE_KEY_LENGTH])
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        executor = ThreadPoolExecutor(max_workers=2 * WINDOW_RADIUS + 1, thread_name_prefix="pagerecon-locate")
        try:
            best = await asyncio.wait_for(
                self._scan_window(executor, document_ref, normalized, fallback_page),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            LOGGER.warning(
                "Page lookup for %s timed out after %.1fs; using page %s",
                document_ref,
                self.timeout_seconds,
                fallback_page,
            )
            return fallback_page
        except Exception as error:
            LOGGER.warning("Page lookup for %s failed: %s; using page %s", document_ref, error, fallback_page)
            return fallback_page
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if best is None or not (best.word_ratio >= ACCEPT_RATIO or best.score >= ACCEPT_SCORE):
            LOGGER.info("No convincing match in %s around page %s", document_ref, fallback_page)
            return fallback_page

        if best.page != fallback_page:
            LOGGER.info(
                "Citation in %s moved from page %s to %s (score=%.0f, ratio=%.2f)",
                document_ref,
                fallback_page,
                best.page,
                best.score,
                best.word_ratio,
            )
        self.cache.put(key, best.page)
        return best.page

    def locate_sync(self, document_ref: str, cited_sentence: str, fallback_page: int) -> int:
        """Blocking variant of :meth:`locate` for callers without an event loop.

        Inside a running loop the lookup cannot be driven synchronously; the
        call logs a warning and keeps ``fallback_page``. Await :meth:`locate`
        there instead.
        """

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.locate(document_ref, cited_sentence, fallback_page))
        LOGGER.warning(
            "locate_sync called from a running event loop for %s; keeping page %s",
            document_ref,
            fallback_page,
        )
        return fallback_page

    async def _scan_window(
        self,
        executor: ThreadPoolExecutor,
        document_ref: str,
        normalized: str,
        fallback_page: int,
    ) -> Optional[PageScore]:
        loop = asyncio.get_running_loop()
        source = await loop.run_in_executor(executor, self.source_opener, document_ref)
        page_count = source.page_count
        first = max(1, fallback_page - WINDOW_RADIUS)
        last = min(page_count, fallback_page + WINDOW_RADIUS)
        if first > last:
            return None

        query_tokens = tokenize(normalized)
        results: List[PageScore] = await asyncio.gather(
            *(
                loop.run_in_executor(
                    executor, self._scan_page, source, page, query_tokens, normalized, fallback_page
                )
                for page in range(first, last + 1)
            )
        )
        results.sort(key=lambda result: rank_key(result, fallback_page))
        return results[0]

    @staticmethod
    def _scan_page(
        source: PageTextSource,
        page: int,
        query_tokens: List[str],
        normalized: str,
        fallback_page: int,
    ) -> PageScore:
        text = source.get_page_text(page) or ""
        return score_page(query_tokens, normalized, text, page, fallback_page)
