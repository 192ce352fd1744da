"""Token overlap scoring of candidate pages against a cited sentence."""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, List, Sequence, Tuple

from ..ingest.normalization import normalize_for_matching

MIN_TOKEN_LENGTH = 2
MIN_RUN_LENGTH = 3
RUN_WEIGHT = 30
VERBATIM_BONUS = 500
FALLBACK_BONUS = 30

# (minimum word ratio, base score, per matched word)
RATIO_TIERS = (
    (0.8, 1000, 50),
    (0.6, 500, 30),
    (0.4, 200, 20),
    (0.2, 50, 10),
)

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        # Korean particles
        "은", "는", "이", "가", "을", "를", "에", "의", "와", "과", "도", "만", "로", "으로",
        "에서", "에게", "까지", "부터", "조차", "마저", "한테",
        # English function words
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "in", "is", "it",
        "of", "on", "or", "the", "to", "was", "with",
    }
)


@dataclass(frozen=True, slots=True)
class PageScore:
    page: int
    score: float
    matched_words: int
    word_ratio: float
    verbatim: bool = False


def tokenize(text: str, stop_words: FrozenSet[str] = STOP_WORDS) -> List[str]:
    """Split normalized text into words of two or more characters, dropping stop words."""

    return [
        token
        for token in normalize_for_matching(text).split()
        if len(token) >= MIN_TOKEN_LENGTH and token not in stop_words
    ]


def _token_found(token: str, page_tokens: Sequence[str]) -> bool:
    return any(token == other or token in other or other in token for other in page_tokens)


def word_match_score(matched: int, total: int) -> float:
    """Tiered score for ``matched`` of ``total`` query words; non-decreasing in the ratio."""

    if total <= 0:
        return 0.0
    ratio = matched / total
    for threshold, base, per_word in RATIO_TIERS:
        if ratio >= threshold:
            return float(base + matched * per_word)
    return 0.0


def bonus_headroom(matched: int, total: int) -> float:
    """Largest run and fallback bonus that keeps the page below one more matched word.

    Pages with a higher word ratio therefore never score lower unless the
    verbatim bonus differs. A full match has no upper neighbour and no limit.
    """

    if total <= 0 or matched >= total:
        return float("inf")
    step = word_match_score(matched + 1, total) - word_match_score(matched, total)
    return max(step - 1.0, 0.0)


def score_page(
    query_tokens: Sequence[str],
    normalized_query: str,
    page_text: str,
    page: int,
    fallback_page: int,
) -> PageScore:
    normalized_page = normalize_for_matching(page_text)
    page_tokens = [token for token in normalized_page.split() if len(token) >= MIN_TOKEN_LENGTH]

    matched = 0
    run = longest_run = 0
    for token in query_tokens:
        if _token_found(token, page_tokens):
            matched += 1
            run += 1
            longest_run = max(longest_run, run)
        else:
            run = 0

    total = len(query_tokens)
    ratio = matched / total if total else 0.0
    score = word_match_score(matched, total)
    verbatim = bool(normalized_query) and normalized_query in normalized_page
    if verbatim:
        score += VERBATIM_BONUS
    bonus = 0.0
    if longest_run >= MIN_RUN_LENGTH:
        bonus += longest_run * RUN_WEIGHT
    if page == fallback_page:
        bonus += FALLBACK_BONUS
    score += min(bonus, bonus_headroom(matched, total))
    return PageScore(page=page, score=score, matched_words=matched, word_ratio=ratio, verbatim=verbatim)


def rank_key(result: PageScore, fallback_page: int) -> Tuple[float, float, int, int, int]:
    """Sort key: best first by score, ratio, matched words, then nearest to fallback, then lowest page."""

    return (-result.score, -result.word_ratio, -result.matched_words, abs(result.page - fallback_page), result.page)
