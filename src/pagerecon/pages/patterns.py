"""Declarative table of footer patterns used to recover printed page numbers.

Each :class:`PagePattern` carries its own regular expression, confidence and
line constraints so new footer styles can be added (and unit tested) without
touching the resolver's control flow. The table is ordered by strategy: every
pattern of one :class:`PatternKind` is tried across all line windows before the
next kind is considered.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

MIN_PAGE_NUMBER = 1
MAX_PAGE_NUMBER = 999

# Trailing non-empty line windows, widened between attempts of one strategy.
LINE_WINDOWS: Tuple[int, ...] = (5, 10, 15, 20, 30, 50)


class PatternKind(str, Enum):
    FRACTION = "fraction"
    OF = "of"
    LABELLED = "labelled"
    BARE_DIGIT = "bare_digit"
    CONTEXT = "context"

    @property
    def max_diff(self) -> int:
        """Largest accepted distance between printed number and physical index."""

        if self in (PatternKind.FRACTION, PatternKind.OF):
            return 100
        return 30


STRATEGY_ORDER: Tuple[PatternKind, ...] = (
    PatternKind.FRACTION,
    PatternKind.OF,
    PatternKind.LABELLED,
    PatternKind.BARE_DIGIT,
)


@dataclass(frozen=True)
class PagePattern:
    """One footer pattern.

    ``regex`` must capture the printed number in group 1 and, for fraction
    style patterns, the total in group 2. ``last_lines`` restricts the pattern
    to the last N lines of the page; ``max_line_length`` rejects long body lines.
    """

    regex: re.Pattern[str]
    kind: PatternKind
    confidence: float
    max_line_length: Optional[int] = None
    last_lines: Optional[int] = None
    small_value_last_line_only: bool = False
    numerator_within_total: bool = False

    def applies_to(self, line: str, distance_from_bottom: int) -> bool:
        if self.last_lines is not None and distance_from_bottom >= self.last_lines:
            return False
        if self.max_line_length is not None and len(line) > self.max_line_length:
            return False
        return True

    def match(self, line: str, distance_from_bottom: int = 0) -> Optional[int]:
        """Return the printed number found in ``line`` or ``None``."""

        if not self.applies_to(line, distance_from_bottom):
            return None
        found = self.regex.search(line)
        if found is None:
            return None
        value = int(found.group(1))
        if self.numerator_within_total and found.lastindex and found.lastindex >= 2:
            if value > int(found.group(2)):
                return None
        if self.small_value_last_line_only and value <= 10 and distance_from_bottom > 0:
            return None
        return value


def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


DEFAULT_PATTERNS: Tuple[PagePattern, ...] = (
    # "53/124"
    PagePattern(_compile(r"^(\d{1,3})\s*/\s*(\d{1,4})$"), PatternKind.FRACTION, 0.98, numerator_within_total=True),
    # "... 53/124"
    PagePattern(_compile(r"(?<![\d/])(\d{1,3})\s*/\s*(\d{1,4})$"), PatternKind.FRACTION, 0.95, numerator_within_total=True),
    # "-- 53 of 124 --"
    PagePattern(_compile(r"^--\s*(\d{1,3})\s*of\s*(\d{1,4})\s*--$"), PatternKind.OF, 0.98, numerator_within_total=True),
    # "- 53 of 124 -"
    PagePattern(_compile(r"^-\s*(\d{1,3})\s*of\s*(\d{1,4})\s*-$"), PatternKind.OF, 0.95, numerator_within_total=True),
    # "53 of 124"
    PagePattern(_compile(r"^(\d{1,3})\s+of\s+(\d{1,4})$"), PatternKind.OF, 0.92, numerator_within_total=True),
    # "... page 53 of 124"
    PagePattern(_compile(r"(?<!\d)(\d{1,3})\s+of\s+(\d{1,4})$"), PatternKind.OF, 0.9, numerator_within_total=True),
    PagePattern(_compile(r"^페이지\s*(\d{1,3})$"), PatternKind.LABELLED, 0.85),
    PagePattern(_compile(r"^page\s*(\d{1,3})$"), PatternKind.LABELLED, 0.85),
    PagePattern(_compile(r"^p\.\s*(\d{1,3})$"), PatternKind.LABELLED, 0.8),
    PagePattern(_compile(r"페이지\s*(\d{1,3})(?!\d)"), PatternKind.LABELLED, 0.75),
    PagePattern(_compile(r"(?<!\d)(\d{1,3})\s*페이지"), PatternKind.LABELLED, 0.75),
    PagePattern(_compile(r"\bpage\s+(\d{1,3})\b"), PatternKind.LABELLED, 0.75),
    # "- 53 -"
    PagePattern(
        _compile(r"^-\s*(\d{1,3})\s*-$"),
        PatternKind.BARE_DIGIT,
        0.5,
        max_line_length=7,
        last_lines=2,
        small_value_last_line_only=True,
    ),
    # "53"
    PagePattern(
        _compile(r"^(\d{1,3})$"),
        PatternKind.BARE_DIGIT,
        0.4,
        max_line_length=5,
        last_lines=2,
        small_value_last_line_only=True,
    ),
)


def patterns_for(kind: PatternKind, patterns: Sequence[PagePattern] = DEFAULT_PATTERNS) -> Tuple[PagePattern, ...]:
    return tuple(pattern for pattern in patterns if pattern.kind is kind)
