"""Recover the printed page number of a single physical page."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..ingest.models import Candidate
from .patterns import (
    DEFAULT_PATTERNS,
    LINE_WINDOWS,
    MAX_PAGE_NUMBER,
    MIN_PAGE_NUMBER,
    STRATEGY_ORDER,
    PagePattern,
    PatternKind,
    patterns_for,
)

LOGGER = logging.getLogger(__name__)

_CONTEXT_TOLERANCE = 5
_UPWARD_TOLERANCE = 5
_BARE_DIGIT_MIN_RATIO = 0.2
_VALID_LINE_RATIO = 0.5
_VALID_PUNCTUATION = set(".,;:!?()[]{}'\"-=+<>/")
_FOOTER_ONLY_RE = re.compile(r"^[\d\s/\-]*(of[\d\s/\-]*)*$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class PageContext:
    """Resolved printed numbers of the immediately adjacent pages."""

    previous: Optional[int] = None
    next: Optional[int] = None

    @property
    def empty(self) -> bool:
        return self.previous is None and self.next is None


def _is_readable_line(line: str) -> bool:
    if _FOOTER_ONLY_RE.match(line):
        return True
    valid = sum(1 for char in line if char.isalnum() or char.isspace() or char in _VALID_PUNCTUATION)
    return valid / len(line) >= _VALID_LINE_RATIO


def footer_lines(page_text: str) -> List[str]:
    """Return the page's non-empty, readable lines with surrounding whitespace removed."""

    lines = (line.strip() for line in page_text.splitlines())
    return [line for line in lines if line and _is_readable_line(line)]


def validate_candidate(
    value: int,
    physical_index: int,
    kind: PatternKind,
    context: Optional[PageContext] = None,
) -> bool:
    """Return ``True`` when ``value`` is a plausible printed number for the page."""

    if value < MIN_PAGE_NUMBER or value > MAX_PAGE_NUMBER:
        return False
    if value == physical_index:
        return False

    diff = abs(value - physical_index)
    if diff > kind.max_diff:
        return False
    # Front matter consumes physical pages, so printed numbers rarely run ahead.
    if value > physical_index and diff > _UPWARD_TOLERANCE:
        return False
    if kind is PatternKind.BARE_DIGIT:
        if value >= physical_index or value < physical_index * _BARE_DIGIT_MIN_RATIO:
            return False

    if context is not None:
        if context.previous is not None and abs(value - (context.previous + 1)) > _CONTEXT_TOLERANCE:
            return False
        if context.next is not None and abs(value - (context.next - 1)) > _CONTEXT_TOLERANCE:
            return False
    return True


def estimate_from_context(physical_index: int, context: Optional[PageContext]) -> int:
    """Estimate a printed number from resolved neighbours, or return the physical index."""

    if context is None or context.empty:
        return physical_index
    estimates = []
    if context.previous is not None:
        estimates.append(context.previous + 1)
    if context.next is not None:
        estimates.append(context.next - 1)
    for estimate in estimates:
        if validate_candidate(estimate, physical_index, PatternKind.CONTEXT):
            return estimate
    return physical_index


class LogicalPageResolver:
    """Find a page's printed number using an ordered table of footer patterns.

    Strategies run in :data:`STRATEGY_ORDER`. Within a strategy, lines are
    scanned bottom-up over successively wider trailing windows. The first
    candidate that passes :func:`validate_candidate` wins; if none does, the
    resolver falls back to :func:`estimate_from_context` and finally to the
    physical index itself.
    """

    def __init__(
        self,
        patterns: Sequence[PagePattern] = DEFAULT_PATTERNS,
        windows: Sequence[int] = LINE_WINDOWS,
    ) -> None:
        self.patterns = tuple(patterns)
        self.windows = tuple(sorted(windows))

    def resolve(self, page_text: str | None, physical_index: int, context: Optional[PageContext] = None) -> int:
        candidate = self.resolve_candidate(page_text, physical_index, context)
        return candidate.value if candidate is not None else physical_index

    def resolve_candidate(
        self,
        page_text: str | None,
        physical_index: int,
        context: Optional[PageContext] = None,
    ) -> Optional[Candidate]:
        """Return the accepted candidate, or ``None`` when the page stays unresolved."""

        try:
            lines = footer_lines(page_text or "")
            if lines:
                candidate = self._match_patterns(lines, physical_index, context)
                if candidate is not None:
                    return candidate
        except Exception:  # pragma: no cover - regex engine failures are unexpected
            LOGGER.exception("Pattern matching failed on physical page %s", physical_index)

        estimate = estimate_from_context(physical_index, context)
        if estimate != physical_index:
            LOGGER.debug("Physical page %s estimated as %s from neighbours", physical_index, estimate)
            return Candidate(value=estimate, confidence=0.3, pattern_kind=PatternKind.CONTEXT.value)
        return None

    def _match_patterns(
        self,
        lines: List[str],
        physical_index: int,
        context: Optional[PageContext],
    ) -> Optional[Candidate]:
        for kind in STRATEGY_ORDER:
            kind_patterns = patterns_for(kind, self.patterns)
            if not kind_patterns:
                continue
            scanned = 0
            for window in self.windows:
                window = min(window, len(lines))
                # Lines already scanned by a narrower window cannot yield a new result.
                for distance in range(scanned, window):
                    line = lines[-1 - distance]
                    for pattern in kind_patterns:
                        value = pattern.match(line, distance)
                        if value is None:
                            continue
                        if validate_candidate(value, physical_index, kind, context):
                            LOGGER.debug(
                                "Physical page %s resolved to %s via %s (line %r)",
                                physical_index,
                                value,
                                kind.value,
                                line,
                            )
                            return Candidate(value=value, confidence=pattern.confidence, pattern_kind=kind.value)
                scanned = window
                if scanned >= len(lines):
                    break
        return None
