"""Shared fixtures for the reconciliation test-suite."""
from __future__ import annotations

import time
from typing import Callable, List, Optional, Sequence

import pytest

from pagerecon.config import reset_settings_cache
from pagerecon.ingest.models import PageContent
from pagerecon.store import reset_chunk_store_cache


class CountingPageSource:
    """In-memory page source recording every page text request."""

    def __init__(self, texts: Sequence[str], *, fail_on: Optional[int] = None, delay: float = 0.0) -> None:
        self.texts = list(texts)
        self.fail_on = fail_on
        self.delay = delay
        self.calls: List[int] = []

    @property
    def page_count(self) -> int:
        return len(self.texts)

    def get_page_text(self, physical_index: int) -> str:
        self.calls.append(physical_index)
        if self.delay:
            time.sleep(self.delay)
        if physical_index == self.fail_on:
            raise RuntimeError(f"render failure on page {physical_index}")
        return self.texts[physical_index - 1]


def make_pages(spans: Sequence[tuple], texts: Optional[Sequence[str]] = None) -> List[PageContent]:
    """Build a page table from explicit ``(physical_index, start, end)`` spans."""

    pages = []
    for position, (physical_index, start, end) in enumerate(spans):
        text = texts[position] if texts is not None else ""
        pages.append(PageContent(physical_index=physical_index, text=text, start_offset=start, end_offset=end))
    return pages


def build_pdf(page_texts: Sequence[str]) -> bytes:
    """Return a minimal PDF with one Helvetica text line per page."""

    page_count = len(page_texts)
    font_id = 3 + 2 * page_count
    kids = " ".join(f"{3 + 2 * index} 0 R" for index in range(page_count))
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {page_count} >>".encode("ascii"),
    ]
    for index, text in enumerate(page_texts):
        content_id = 4 + 2 * index
        objects.append(
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 300 300] /Contents {content_id} 0 R "
            f"/Resources << /Font << /F1 {font_id} 0 R >> >> >>".encode("ascii")
        )
        stream = f"BT /F1 12 Tf 20 150 Td ({text}) Tj ET".encode("latin-1")
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")
    objects.append(b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>")

    output = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(output))
        output += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_offset = len(output)
    output += b"xref\n0 %d\n" % (len(objects) + 1)
    output += b"0000000000 65535 f \n"
    for offset in offsets:
        output += b"%010d 00000 n \n" % offset
    output += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_offset)
    return bytes(output)


@pytest.fixture(autouse=True)
def _reset_cached_settings():
    reset_settings_cache()
    reset_chunk_store_cache()
    yield
    reset_settings_cache()
    reset_chunk_store_cache()


@pytest.fixture
def counting_source_factory() -> Callable[..., CountingPageSource]:
    return CountingPageSource


@pytest.fixture
def pdf_bytes() -> bytes:
    return build_pdf(["Hello PDF", "Second page 1/2"])
