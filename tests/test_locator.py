import time

import pytest
from conftest import CountingPageSource

from pagerecon.ingest.normalization import normalize_for_matching
from pagerecon.locator import BoundedCache, RuntimePageLocator, score_page, tokenize, word_match_score
from pagerecon.locator.scoring import FALLBACK_BONUS, RUN_WEIGHT, VERBATIM_BONUS, bonus_headroom

CITED = "The tenant shall pay the rent on the first day of each month."

PAGES = [
    "Weather and sports results were published in the local paper.",
    "Payment terms. The tenant shall pay the rent on the first day of each month. Late fees apply.",
    "Termination requires written notice delivered by registered mail.",
]


@pytest.fixture
def anyio_backend():
    return "asyncio"


def _locator(source, **kwargs):
    opened = []

    def opener(document_ref: str):
        opened.append(document_ref)
        return source

    locator = RuntimePageLocator(opener, **kwargs)
    return locator, opened


def test_bounded_cache_evicts_oldest_entry() -> None:
    cache = BoundedCache(capacity=2)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("a", 10)
    cache.put("c", 3)

    assert "a" not in cache
    assert cache.get("b") == 2
    assert cache.get("c") == 3
    assert len(cache) == 2

    cache.clear()
    assert len(cache) == 0


def test_bounded_cache_requires_capacity() -> None:
    with pytest.raises(ValueError):
        BoundedCache(capacity=0)


def test_tokenize_drops_short_tokens_and_particles() -> None:
    assert tokenize("The contract is valid, 은 계약은 유효하다 으로") == ["contract", "valid", "계약은", "유효하다"]


def test_word_match_score_never_decreases_with_more_matches() -> None:
    for total in range(1, 25):
        scores = [word_match_score(matched, total) for matched in range(total + 1)]
        assert scores == sorted(scores)
        for matched in range(total):
            if matched / total >= 0.2:
                assert scores[matched + 1] > scores[matched]


def test_higher_word_ratio_scores_higher_with_equal_bonuses() -> None:
    query = tokenize("alpha bravo charlie delta echo foxtrot")

    better = score_page(query, "", "alpha zulu charlie yankee echo", page=1, fallback_page=99)
    worse = score_page(query, "", "alpha zulu charlie yankee", page=2, fallback_page=99)

    assert better.word_ratio > worse.word_ratio
    assert better.score > worse.score


def test_consecutive_run_cannot_outscore_higher_word_ratio() -> None:
    query = tokenize("alpha bravo charlie delta echo foxtrot golf hotel india juliet")

    run_page = score_page(query, "", "alpha bravo charlie delta", page=1, fallback_page=1)
    spread_page = score_page(query, "", "alpha charlie echo golf india", page=2, fallback_page=1)

    assert run_page.word_ratio == 0.4
    assert spread_page.word_ratio == 0.5
    assert run_page.score > word_match_score(4, 10)
    assert run_page.score < spread_page.score


def test_bonuses_never_lift_a_page_past_a_higher_word_ratio() -> None:
    largest_bonus = 50 * RUN_WEIGHT + FALLBACK_BONUS
    for total in range(1, 30):
        for lower in range(total):
            boosted = word_match_score(lower, total) + min(largest_bonus, bonus_headroom(lower, total))
            for higher in range(lower + 1, total + 1):
                assert boosted <= word_match_score(higher, total)

    assert bonus_headroom(10, 10) == float("inf")


def test_verbatim_sentence_earns_bonus() -> None:
    query = tokenize(CITED)

    result = score_page(query, normalize_for_matching(CITED), PAGES[1], page=2, fallback_page=2)

    assert result.verbatim
    assert result.word_ratio == 1.0
    assert result.score >= 1000 + VERBATIM_BONUS


def test_verbatim_match_on_fallback_page_is_cached() -> None:
    source = CountingPageSource(PAGES)
    locator, opened = _locator(source)

    assert locator.locate_sync("lease.pdf", CITED, 2) == 2
    assert sorted(source.calls) == [1, 2, 3]

    assert locator.locate_sync("lease.pdf", CITED, 2) == 2
    assert sorted(source.calls) == [1, 2, 3]
    assert opened == ["lease.pdf"]


def test_citation_moves_to_neighbouring_page() -> None:
    source = CountingPageSource([PAGES[0], PAGES[2], PAGES[1]])
    locator, _ = _locator(source)

    assert locator.locate_sync("lease.pdf", CITED, 2) == 3


def test_window_is_clamped_to_document() -> None:
    source = CountingPageSource(PAGES)
    locator, _ = _locator(source)

    assert locator.locate_sync("lease.pdf", "Weather and sports results were published", 1) == 1
    assert sorted(source.calls) == [1, 2]


def test_short_sentence_returns_fallback_without_scanning() -> None:
    source = CountingPageSource(PAGES)
    locator, opened = _locator(source)

    assert locator.locate_sync("lease.pdf", "Rent due.", 3) == 3
    assert opened == []


def test_weak_match_keeps_fallback_and_is_not_cached() -> None:
    source = CountingPageSource(PAGES)
    locator, _ = _locator(source)

    assert locator.locate_sync("lease.pdf", "Quantum chromodynamics lecture notes volume", 2) == 2
    assert len(locator.cache) == 0


def test_backend_failure_degrades_to_fallback() -> None:
    def opener(_: str):
        raise OSError("document store offline")

    locator = RuntimePageLocator(opener)

    assert locator.locate_sync("lease.pdf", CITED, 5) == 5
    assert len(locator.cache) == 0


def test_page_render_failure_degrades_to_fallback() -> None:
    source = CountingPageSource(PAGES, fail_on=3)
    locator, _ = _locator(source)

    assert locator.locate_sync("lease.pdf", CITED, 2) == 2
    assert len(locator.cache) == 0


def test_slow_backend_times_out_to_fallback() -> None:
    source = CountingPageSource(PAGES, delay=1.0)
    locator, _ = _locator(source, timeout_seconds=0.05)

    started = time.perf_counter()
    assert locator.locate_sync("lease.pdf", CITED, 1) == 1
    assert time.perf_counter() - started < 0.5
    assert len(locator.cache) == 0


def test_fallback_outside_document_is_returned_unchanged() -> None:
    source = CountingPageSource(PAGES)
    locator, _ = _locator(source)

    assert locator.locate_sync("lease.pdf", CITED, 40) == 40
    assert source.calls == []


def test_cache_is_keyed_per_document() -> None:
    cache = BoundedCache(capacity=10)
    locator, opened = _locator(CountingPageSource(PAGES), cache=cache)

    locator.locate_sync("a.pdf", CITED, 2)
    locator.locate_sync("b.pdf", CITED, 2)

    assert opened == ["a.pdf", "b.pdf"]
    assert len(cache) == 2


@pytest.mark.anyio
async def test_locate_runs_inside_event_loop() -> None:
    locator, _ = _locator(CountingPageSource(PAGES))

    assert await locator.locate("lease.pdf", CITED, 1) == 2


@pytest.mark.anyio
async def test_locate_sync_inside_event_loop_keeps_fallback() -> None:
    source = CountingPageSource(PAGES)
    locator, opened = _locator(source)

    assert locator.locate_sync("lease.pdf", CITED, 1) == 1
    assert opened == []
    assert await locator.locate("lease.pdf", CITED, 1) == 2
