"""Sentence-aware character chunking for a single source document.

The scan takes up to ``max_chars`` characters at a time and, when the window
does not reach the end of the text, pulls the cut back to the last period or
newline in the window so chunks end on sentence boundaries. A break point is
only used if it lies more than ``min_chars`` into the window; otherwise the
hard ``max_chars`` cut stands.
"""

import logging

from schemas.chunk import Chunk
from vectorstore.errors import ValidationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

MIN_CHUNK_CHARS = 300
MAX_CHUNK_CHARS = 500

BREAK_CHARS = (".", "\n")


def _last_break(window: str, limit: int) -> int:
    """Index of the last break character in ``window[:limit]``, or -1."""
    return max(window.rfind(ch, 0, limit) for ch in BREAK_CHARS)


def chunk_text(
    text: str,
    min_chars: int = MIN_CHUNK_CHARS,
    max_chars: int = MAX_CHUNK_CHARS,
) -> list[str]:
    """Split ``text`` into trimmed, non-empty chunks of at most ``max_chars``.

    CRLF line endings are normalized first. Empty or whitespace-only input
    yields an empty list.
    """
    normalized = text.replace("\r\n", "\n").strip()
    if not normalized:
        return []

    chunks: list[str] = []
    start = 0
    length = len(normalized)

    while start < length:
        # Measure the window from the first non-blank character so trimming
        # cannot push a chunk below min_chars.
        while normalized[start].isspace():
            start += 1
        end = min(start + max_chars, length)
        if end < length:
            # One character of lookahead so a break sitting exactly on the
            # boundary is still found.
            window = normalized[start:end + 1]
            break_at = _last_break(window, len(window))
            if break_at == max_chars and window[break_at] == ".":
                # Keeping a period in the lookahead slot would overflow max_chars;
                # a newline there is trimmed away, so only the period is excluded.
                break_at = _last_break(window, max_chars)
            if break_at > min_chars:
                end = start + break_at + 1

        chunk = normalized[start:end].strip()
        if chunk:
            chunks.append(chunk)
        start = end

    return chunks


class Chunker:
    """Turns one raw document into ordered ``Chunk`` records."""

    def __init__(self, min_chars: int = MIN_CHUNK_CHARS, max_chars: int = MAX_CHUNK_CHARS):
        if min_chars < 0 or max_chars <= min_chars:
            raise ValidationError(
                f"Chunk bounds must satisfy 0 <= min < max (got min={min_chars}, max={max_chars})",
                field="chunk_bounds",
            )
        self.min_chars = min_chars
        self.max_chars = max_chars

    def split(self, text: str) -> list[str]:
        return chunk_text(text, self.min_chars, self.max_chars)

    def chunk_document(self, text: str) -> list[Chunk]:
        """Chunk a document and assign position-derived IDs (chunk_0, chunk_1, ...)."""
        chunks = [Chunk.at(i, piece) for i, piece in enumerate(self.split(text))]
        if chunks:
            sizes = [len(c.text) for c in chunks]
            logger.info(
                "Chunked %d chars into %d chunks (min %d, max %d, avg %.0f chars)",
                len(text), len(chunks), min(sizes), max(sizes), sum(sizes) / len(sizes),
            )
        else:
            logger.info("No chunks produced from %d chars of input", len(text))
        return chunks
