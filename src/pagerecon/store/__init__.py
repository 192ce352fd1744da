"""Chunk record stores backed by pluggable backends."""

from __future__ import annotations

from functools import lru_cache

from ..config import get_settings
from ..errors import ChunkStoreUnavailableError
from .batching import BatchWriter
from .chroma_store import ChromaChunkStore
from .memory_store import ChunkStore, InMemoryChunkStore


@lru_cache()
def get_chunk_store() -> ChunkStore:
    """Return a lazily initialised chunk store based on configuration."""

    settings = get_settings()
    backend = settings.chunk_store
    if backend == "memory":
        return InMemoryChunkStore()
    if backend == "chroma":
        return ChromaChunkStore(settings.chroma_persist_dir)
    raise ValueError(f"Unsupported CHUNK_STORE backend: {backend!r}")


def reset_chunk_store_cache() -> None:
    """Clear the cached chunk store (primarily for testing)."""

    get_chunk_store.cache_clear()  # type: ignore[attr-defined]


__all__ = [
    "BatchWriter",
    "ChromaChunkStore",
    "ChunkStore",
    "ChunkStoreUnavailableError",
    "InMemoryChunkStore",
    "get_chunk_store",
    "reset_chunk_store_cache",
]
