"""Common exceptions raised by the reconciliation engine."""
from __future__ import annotations


class PageReconError(RuntimeError):
    """Base class for errors that propagate to the ingestion caller."""


class DocumentOpenError(PageReconError):
    """Raised when a document cannot be opened by the page text backend."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class ChunkStoreUnavailableError(PageReconError):
    """Raised when the chunk store cannot be initialised or written to."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause
