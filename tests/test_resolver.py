import pytest

from pagerecon.pages.patterns import MAX_PAGE_NUMBER, MIN_PAGE_NUMBER, PatternKind
from pagerecon.pages.resolver import (
    LogicalPageResolver,
    PageContext,
    estimate_from_context,
    footer_lines,
    validate_candidate,
)


@pytest.fixture
def resolver() -> LogicalPageResolver:
    return LogicalPageResolver()


def test_fraction_footer_resolves_printed_number(resolver: LogicalPageResolver) -> None:
    text = "Revenue grew in every region.\nAnnual report ... 53/124"

    candidate = resolver.resolve_candidate(text, 60)

    assert candidate is not None
    assert candidate.value == 53
    assert candidate.pattern_kind == "fraction"
    assert resolver.resolve(text, 60) == 53


def test_labelled_footer_resolves_printed_number(resolver: LogicalPageResolver) -> None:
    assert resolver.resolve("Terms and conditions apply.\nPage 12", 15) == 12


def test_fraction_allows_wider_distance_than_labelled(resolver: LogicalPageResolver) -> None:
    assert resolver.resolve("Body text\n5/200", 60) == 5
    assert resolver.resolve("Body text\nPage 5", 60) == 60


def test_printed_number_far_ahead_of_physical_is_rejected(resolver: LogicalPageResolver) -> None:
    assert resolver.resolve("Body text\nPage 40", 30) == 30
    assert resolver.resolve("Body text\nPage 33", 30) == 33


def test_bare_digit_must_trail_physical_index(resolver: LogicalPageResolver) -> None:
    assert resolver.resolve("Body text\n42", 50) == 42
    assert resolver.resolve("Body text\n50", 45) == 45


def test_candidate_far_from_neighbours_is_discarded(resolver: LogicalPageResolver) -> None:
    assert resolver.resolve_candidate("Body\nPage 12", 15, PageContext(previous=30)) is None
    assert resolver.resolve("Body\nPage 12", 15, PageContext(previous=10)) == 12


def test_contextual_estimate_between_resolved_neighbours(resolver: LogicalPageResolver) -> None:
    candidate = resolver.resolve_candidate(
        "A page of prose with no footer at all", 12, PageContext(previous=9, next=11)
    )

    assert candidate is not None
    assert candidate.value == 10
    assert candidate.pattern_kind == PatternKind.CONTEXT.value


def test_unreadable_page_falls_back_to_physical_index(resolver: LogicalPageResolver) -> None:
    assert resolver.resolve(None, 7) == 7
    assert resolver.resolve("", 7) == 7
    assert resolver.resolve("", 7, PageContext(previous=5)) == 6


def test_estimate_from_context_prefers_previous_page() -> None:
    assert estimate_from_context(12, PageContext(previous=9, next=20)) == 10
    assert estimate_from_context(12, PageContext(next=9)) == 8
    assert estimate_from_context(12, None) == 12


def test_footer_lines_drop_blank_and_garbled_lines() -> None:
    text = "  First line  \n\n■■■■■■x\n  3 / 10  \n"

    assert footer_lines(text) == ["First line", "3 / 10"]


@pytest.mark.parametrize("kind", [PatternKind.FRACTION, PatternKind.LABELLED, PatternKind.BARE_DIGIT])
@pytest.mark.parametrize("physical_index", [1, 8, 40, 150, 998])
def test_validated_numbers_respect_bounds(kind: PatternKind, physical_index: int) -> None:
    for value in range(-2, MAX_PAGE_NUMBER + 3):
        if not validate_candidate(value, physical_index, kind):
            continue
        diff = abs(value - physical_index)
        assert MIN_PAGE_NUMBER <= value <= MAX_PAGE_NUMBER
        assert value != physical_index
        assert diff <= kind.max_diff
        assert value <= physical_index or diff <= 5


def test_resolved_pages_satisfy_validation_bounds(resolver: LogicalPageResolver) -> None:
    footers = ["3/40", "Page 9", "- 17 -", "12", "Page 90", "500/900", "7 of 9"]
    for physical_index in (1, 5, 11, 20, 60, 120):
        for footer in footers:
            candidate = resolver.resolve_candidate(f"Body\n{footer}", physical_index)
            if candidate is None:
                continue
            diff = abs(candidate.value - physical_index)
            assert MIN_PAGE_NUMBER <= candidate.value <= MAX_PAGE_NUMBER
            assert diff <= PatternKind(candidate.pattern_kind).max_diff
            assert candidate.value <= physical_index or diff <= 5
