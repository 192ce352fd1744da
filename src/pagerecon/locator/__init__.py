"""Runtime citation page lookup."""

from .cache import BoundedCache
from .runtime import RuntimePageLocator
from .scoring import STOP_WORDS, PageScore, score_page, tokenize, word_match_score

__all__ = [
    "BoundedCache",
    "PageScore",
    "RuntimePageLocator",
    "STOP_WORDS",
    "score_page",
    "tokenize",
    "word_match_score",
]
