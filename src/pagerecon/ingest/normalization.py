"""Text normalisation utilities."""
from __future__ import annotations

import re
import unicodedata

_WHITESPACE_RE = re.compile(r"[ \t]+")
_MULTIPLE_NEWLINES_RE = re.compile(r"\n{3,}")
_TRAILING_SPACE_RE = re.compile(r"[ \t]+\n")

_ANY_WHITESPACE_RE = re.compile(r"\s+")
# Word characters (Unicode aware, so Hangul and CJK survive), whitespace, ':' and ';'.
_NON_MATCHING_CHARS_RE = re.compile(r"[^\w\s:;]")


def normalize_text(text: str) -> str:
    """Normalise whitespace and Unicode representation."""

    normalized = unicodedata.normalize("NFC", text)
    normalized = normalized.replace("\r\n", "\n").replace("\r", "\n")
    normalized = _WHITESPACE_RE.sub(" ", normalized)
    normalized = _TRAILING_SPACE_RE.sub("\n", normalized)
    normalized = _MULTIPLE_NEWLINES_RE.sub("\n\n", normalized)
    return normalized.strip()


def normalize_for_matching(text: str | None) -> str:
    """Collapse whitespace, drop punctuation other than ``:``/``;`` and lowercase.

    Used for every text comparison between chunks, sentences and page text.
    """

    if not text:
        return ""
    collapsed = _ANY_WHITESPACE_RE.sub(" ", text)
    stripped = _NON_MATCHING_CHARS_RE.sub("", collapsed)
    return stripped.lower().strip()
