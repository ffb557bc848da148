"""Paragraph-first text chunker with a sentence fallback.

Chunk boundaries must be deterministic: vector ids are ``{doc_id}-{index}``,
so the same text always has to yield the same chunk sequence.

Algorithm:
  1. Normalise CRLF to LF and trim. Empty text → no chunks.
  2. Split on blank lines (runs of two or more newlines).
  3. Greedily accumulate paragraphs; when appending the next one (separator
     included) would push ``current`` past ``max_chunk_size`` and ``current``
     is non-empty, close the chunk.
  4. If no chunk came out of step 3, redo it on sentence boundaries
     (whitespace following ``.``, ``!`` or ``?``). Non-blank text always
     yields at least one paragraph, so this is only a guard: text without
     blank lines becomes one paragraph chunk, not sentence chunks.

The size limit is a soft target: a single paragraph or sentence longer than
``max_chunk_size`` is emitted whole, never cut mid-token.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_MAX_CHUNK_SIZE = 500
DEFAULT_PREVIEW_CHARS = 1000

_PARAGRAPH_RE = re.compile(r"\n\n+")
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")

_PARAGRAPH_SEP = "\n\n"
_SENTENCE_SEP = " "


@dataclass(frozen=True)
class Chunk:
    """One retrievable slice of a document."""

    doc_id: str
    chunk_index: int
    text: str

    @property
    def vector_id(self) -> str:
        return vector_id(self.doc_id, self.chunk_index)

    def preview(self, limit: int = DEFAULT_PREVIEW_CHARS) -> str:
        return self.text[:limit]


def vector_id(doc_id: str, chunk_index: int) -> str:
    """Return the vector index id for chunk *chunk_index* of *doc_id*."""
    return f"{doc_id}-{chunk_index}"


def split_into_chunks(text: str, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE) -> list[str]:
    """Split *text* into an ordered list of non-empty chunks.

    Args:
        text: Raw document text.
        max_chunk_size: Soft upper bound on chunk length in characters.

    Returns:
        Chunk strings in document order (empty list for blank input).

    Raises:
        ValueError: If *max_chunk_size* is less than 1.
    """
    if max_chunk_size < 1:
        raise ValueError("max_chunk_size must be >= 1")

    clean = text.replace("\r\n", "\n").strip()
    if not clean:
        return []

    paragraphs = [p.strip() for p in _PARAGRAPH_RE.split(clean)]
    chunks = _accumulate(paragraphs, max_chunk_size, _PARAGRAPH_SEP)

    if not chunks:  # guard only, see step 4
        sentences = _SENTENCE_RE.split(clean)
        chunks = _accumulate(sentences, max_chunk_size, _SENTENCE_SEP)

    return chunks


def make_chunks(doc_id: str, texts: list[str]) -> list[Chunk]:
    """Convert chunk strings into sequentially indexed Chunks."""
    return [Chunk(doc_id=doc_id, chunk_index=i, text=t) for i, t in enumerate(texts)]


def _accumulate(parts: list[str], max_chunk_size: int, sep: str) -> list[str]:
    """Greedy merge of *parts*, keeping each joined chunk within the limit."""
    chunks: list[str] = []
    current = ""

    for part in parts:
        if not part:
            continue
        if current and len(current) + len(sep) + len(part) > max_chunk_size:
            chunks.append(current.strip())
            current = part
        else:
            current = f"{current}{sep}{part}" if current else part

    if current.strip():
        chunks.append(current.strip())

    return chunks
