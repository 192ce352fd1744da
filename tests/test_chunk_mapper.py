import pytest
from conftest import make_pages

from pagerecon.ingest.models import PageAssignment
from pagerecon.mapping.chunk_mapper import ChunkPageMapper, intersecting_pages, overlap_ratio, page_at_offset


@pytest.fixture
def pages():
    texts = [
        "Chapter one opens with the definitions used throughout the agreement.",
        "Chapter two lists the obligations of the tenant and of the landlord.",
        "Chapter three covers termination, notices and the governing law.",
    ]
    return make_pages([(1, 0, 400), (2, 400, 800), (3, 800, 1200)], texts)


def test_chunk_inside_single_page_gets_that_page(pages) -> None:
    mapper = ChunkPageMapper()

    # Text of another page must not pull the chunk away from the only page it overlaps.
    assignment = mapper.map_chunk(500, 700, pages, content=pages[2].text)

    assert assignment.physical_page == 2


def test_text_evidence_picks_page_with_the_content(pages) -> None:
    assignment = ChunkPageMapper().map_chunk(390, 800, pages, content=pages[1].text)

    assert assignment.physical_page == 2


def test_offset_fallback_prefers_page_holding_chunk_start(pages) -> None:
    mapper = ChunkPageMapper()

    assert mapper.map_chunk(350, 450, pages).physical_page == 1
    assert mapper.map_chunk(350, 450, pages, content="short").physical_page == 1


def test_logical_number_is_reported_with_the_page(pages) -> None:
    pages[1].logical_number = 40

    assert ChunkPageMapper().map_chunk(500, 700, pages) == PageAssignment(physical_page=2, logical_page=40)
    assert ChunkPageMapper().map_chunk(100, 200, pages) == PageAssignment(physical_page=1, logical_page=1)


def test_chunk_outside_every_page_uses_last_page(pages) -> None:
    assert ChunkPageMapper().map_chunk(5000, 5100, pages).physical_page == 3


def test_empty_page_table_defaults_to_first_page() -> None:
    assert ChunkPageMapper().map_chunk(0, 10, []) == PageAssignment(physical_page=1, logical_page=1)


@pytest.mark.parametrize(("start", "end"), [(0, 50), (350, 450), (399, 801), (790, 1300), (100, 1100)])
def test_assignment_is_among_intersecting_pages(pages, start: int, end: int) -> None:
    candidates = {page.physical_index for page in intersecting_pages(start, end, pages)}
    mapper = ChunkPageMapper()

    first = mapper.map_chunk(start, end, pages, content=pages[1].text)
    second = mapper.map_chunk(start, end, pages, content=pages[1].text)

    assert first.physical_page in candidates
    assert first == second


def test_overlap_helpers(pages) -> None:
    assert overlap_ratio(300, 500, pages[0]) == pytest.approx(0.5)
    assert overlap_ratio(10, 10, pages[0]) == 0.0
    assert page_at_offset(400, pages).physical_index == 2
    assert page_at_offset(1200, pages) is None
