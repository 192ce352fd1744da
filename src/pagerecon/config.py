"""Environment driven settings."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

LOGGER = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        LOGGER.warning("Ignoring invalid integer for %s: %r", name, raw)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        LOGGER.warning("Ignoring invalid number for %s: %r", name, raw)
        return default


@dataclass(slots=True)
class Settings:
    chunk_chars: int = 2000
    overlap_chars: int = 200
    window_size: int = 10
    store_batch_size: int = 100
    store_max_retries: int = 3
    store_backoff_seconds: float = 0.5
    locator_cache_size: int = 1000
    locator_timeout_seconds: float = 5.0
    extract_workers: int = 4
    chunk_store: str = "memory"
    chroma_persist_dir: str = "chroma_db"
    pdf_root: str = "data/pdf"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``PAGERECON_*`` and backend environment variables."""

        return cls(
            chunk_chars=_env_int("PAGERECON_CHUNK_CHARS", 2000),
            overlap_chars=_env_int("PAGERECON_OVERLAP_CHARS", 200),
            window_size=_env_int("PAGERECON_WINDOW_SIZE", 10),
            store_batch_size=_env_int("PAGERECON_STORE_BATCH_SIZE", 100),
            store_max_retries=_env_int("PAGERECON_STORE_MAX_RETRIES", 3),
            store_backoff_seconds=_env_float("PAGERECON_STORE_BACKOFF", 0.5),
            locator_cache_size=_env_int("PAGERECON_LOCATOR_CACHE_SIZE", 1000),
            locator_timeout_seconds=_env_float("PAGERECON_LOCATOR_TIMEOUT", 5.0),
            extract_workers=_env_int("PAGERECON_EXTRACT_WORKERS", 4),
            chunk_store=os.getenv("CHUNK_STORE", "memory").strip().lower(),
            chroma_persist_dir=os.getenv("CHROMA_PERSIST_DIR", "chroma_db"),
            pdf_root=os.getenv("PDF_ROOT", "data/pdf"),
            log_level=os.getenv("PAGERECON_LOG_LEVEL", "INFO").strip() or "INFO",
        )


@lru_cache()
def get_settings() -> Settings:
    """Return process wide settings read once from the environment."""

    return Settings.from_env()


def reset_settings_cache() -> None:
    """Clear the cached settings (primarily for testing)."""

    get_settings.cache_clear()  # type: ignore[attr-defined]
