"""API router resolving cited sentences to physical pages."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..config import get_settings
from ..errors import DocumentOpenError
from ..ingest.extractors import PageTextSource, open_pdf_source
from ..locator import BoundedCache, RuntimePageLocator

router = APIRouter(prefix="/documents", tags=["locate"])


class LocateRequest(BaseModel):
    """Request body accepted by the locate endpoint."""

    cited_sentence: str = Field(..., description="Sentence quoted by the answer.")
    fallback_page: int = Field(..., ge=1, description="Physical page stored with the cited chunk.")


class LocateResponse(BaseModel):
    document_ref: str
    physical_page: int
    fallback_page: int
    changed: bool


def open_document(document_ref: str) -> PageTextSource:
    """Open ``document_ref`` relative to the configured PDF root."""

    root = Path(get_settings().pdf_root).resolve()
    path = (root / document_ref).resolve()
    if root != path and root not in path.parents:
        raise DocumentOpenError(f"Document reference escapes the PDF root: {document_ref}")
    return open_pdf_source(path)


@lru_cache()
def get_locator() -> RuntimePageLocator:
    settings = get_settings()
    return RuntimePageLocator(
        open_document,
        cache=BoundedCache(settings.locator_cache_size),
        timeout_seconds=settings.locator_timeout_seconds,
    )


@router.post("/{document_ref:path}/locate", response_model=LocateResponse)
async def locate_citation(
    document_ref: str,
    request: LocateRequest,
    locator: RuntimePageLocator = Depends(get_locator),
) -> LocateResponse:
    """Return the physical page holding the cited sentence, or the fallback page."""

    page = await locator.locate(document_ref, request.cited_sentence, request.fallback_page)
    return LocateResponse(
        document_ref=document_ref,
        physical_page=page,
        fallback_page=request.fallback_page,
        changed=page != request.fallback_page,
    )
