"""Page text sources for supported document types."""
from __future__ import annotations

import io
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Protocol, Sequence, runtime_checkable

from PyPDF2 import PdfReader

from ..errors import DocumentOpenError

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class PageTextSource(Protocol):
    """Raw text per physical page (1-based) of one opened document."""

    @property
    def page_count(self) -> int:
        ...

    def get_page_text(self, physical_index: int) -> str:
        ...


class InMemoryPageSource:
    """Page source over already extracted page texts."""

    def __init__(self, texts: Sequence[str]) -> None:
        self._texts = list(texts)

    @property
    def page_count(self) -> int:
        return len(self._texts)

    def get_page_text(self, physical_index: int) -> str:
        if physical_index < 1 or physical_index > len(self._texts):
            raise IndexError(f"Physical page {physical_index} out of range 1..{len(self._texts)}")
        return self._texts[physical_index - 1]


class PDFPageSource:
    """Extract page text from PDF documents with PyPDF2.

    ``PdfReader`` seeks a shared stream while resolving objects, so every
    thread that reads pages gets its own reader over the same bytes.
    """

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._local = threading.local()
        try:
            self._page_count = len(self._reader().pages)
        except Exception as exc:
            raise DocumentOpenError("Failed to open PDF document", cause=exc) from exc

    @property
    def page_count(self) -> int:
        return self._page_count

    def _reader(self) -> PdfReader:
        reader = getattr(self._local, "reader", None)
        if reader is None:
            reader = PdfReader(io.BytesIO(self._data))
            self._local.reader = reader
        return reader

    def get_page_text(self, physical_index: int) -> str:
        if physical_index < 1 or physical_index > self._page_count:
            raise IndexError(f"Physical page {physical_index} out of range 1..{self._page_count}")
        return self._reader().pages[physical_index - 1].extract_text() or ""


def open_pdf_source(source: str | Path | bytes) -> PDFPageSource:
    """Open a PDF from a path or raw bytes."""

    if isinstance(source, (bytes, bytearray)):
        return PDFPageSource(bytes(source))
    path = Path(source)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise DocumentOpenError(f"Cannot read document {path}", cause=exc) from exc
    return PDFPageSource(data)


def safe_page_text(source: PageTextSource, physical_index: int) -> str:
    """Return the page text, or ``""`` when the backend fails on that page."""

    try:
        return source.get_page_text(physical_index) or ""
    except Exception as error:
        LOGGER.warning("Failed to extract text from physical page %s: %s", physical_index, error)
        return ""


def extract_page_texts(source: PageTextSource, max_workers: int = 4) -> List[str]:
    """Extract every page with bounded parallelism, preserving physical order."""

    indices = range(1, source.page_count + 1)
    if max_workers <= 1 or source.page_count <= 1:
        return [safe_page_text(source, index) for index in indices]
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lambda index: safe_page_text(source, index), indices))
