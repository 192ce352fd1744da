"""Fixed-size window chunking over the concatenated document text."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Tuple

LOGGER = logging.getLogger(__name__)

_BREAK_CHARS = (".", "\n", " ")


@dataclass(slots=True)
class ChunkingConfig:
    chunk_chars: int = 2000
    overlap_chars: int = 200


class FixedWindowChunker:
    """Split text into overlapping windows, preferring to cut at a sentence, line or word end."""

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()

    def chunk(self, text: str) -> Iterator[Tuple[str, int, int]]:
        """Yield ``(content, start, end)`` with offsets into ``text``.

        Content is stripped of surrounding whitespace and the offsets are
        adjusted to match, so ``text[start:end] == content``.
        """

        if not text:
            return
        chunk_chars = max(self.config.chunk_chars, 1)
        overlap_chars = min(max(self.config.overlap_chars, 0), chunk_chars - 1)
        text_length = len(text)
        start = 0
        while start < text_length:
            end = min(start + chunk_chars, text_length)
            if end < text_length:
                window = text[start:end]
                for char in _BREAK_CHARS:
                    cut = window.rfind(char)
                    if cut + 1 >= chunk_chars * 0.5:
                        end = start + cut + 1
                        break

            raw_chunk = text[start:end]
            stripped = raw_chunk.strip()
            if stripped:
                leading_ws = len(raw_chunk) - len(raw_chunk.lstrip())
                trailing_ws = len(raw_chunk) - len(raw_chunk.rstrip())
                yield stripped, start + leading_ws, end - trailing_ws
            else:
                LOGGER.debug("Skipping whitespace-only window %s-%s", start, end)

            if end >= text_length:
                break
            next_start = end - overlap_chars
            start = next_start if next_start > start else end
