"""Dense retriever: embed the query, take the top-K nearest vector entries.

Similarity is whatever the VectorIndex reports; this module only consumes
its ranked list and keeps the index's order.
"""

from __future__ import annotations

from ragserve.db.models import RetrievedChunk, VectorMatch
from ragserve.interfaces import EmbeddingClient, VectorIndex


def retrieve(
    query: str,
    embedder: EmbeddingClient,
    index: VectorIndex,
    top_k: int,
) -> list[RetrievedChunk]:
    """Return up to *top_k* chunks for *query*, best match first."""
    query_embedding = embedder.embed(query)
    matches = index.query(query_embedding, top_k)
    return [to_retrieved(m) for m in matches]


def to_retrieved(match: VectorMatch) -> RetrievedChunk:
    """Map a vector match to a retrieved chunk, preferring the full text."""
    meta = match.metadata
    return RetrievedChunk(
        text=meta.get("fullText") or meta.get("text", ""),
        file_name=meta.get("fileName", ""),
        score=match.score,
    )
