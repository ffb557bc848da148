"""Ingestion pipeline: chunk → embed → index → register.

Ordering:
  1. All vector entries are written in one batch upsert.
  2. The Document record is written last, so a registered document always has
     its vectors. A failure between the two leaves orphaned vectors, which
     are reconciled out of band.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from ragserve.db.models import Document, VectorEntry
from ragserve.errors import EmptyContent
from ragserve.ingest.chunker import (
    DEFAULT_MAX_CHUNK_SIZE,
    DEFAULT_PREVIEW_CHARS,
    Chunk,
    make_chunks,
    split_into_chunks,
)
from ragserve.interfaces import DocumentRegistry, EmbeddingClient, VectorIndex

logger = logging.getLogger(__name__)


def _new_doc_id() -> str:
    return str(uuid.uuid4())


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class IngestionPipeline:
    """Turn one uploaded text document into indexed, registered chunks.

    Args:
        embedder: Embedding capability.
        index: Vector index capability.
        registry: Document registry capability.
        max_chunk_size: Soft chunk length limit in characters.
        preview_chars: Length of the ``text`` preview stored in metadata.
        embed_workers: Parallel embedding calls per document (1 = sequential).
        id_factory: Returns a fresh document id (uuid4 by default).
        clock: Returns the upload timestamp as an ISO-8601 string.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        index: VectorIndex,
        registry: DocumentRegistry,
        *,
        max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
        preview_chars: int = DEFAULT_PREVIEW_CHARS,
        embed_workers: int = 1,
        id_factory: Callable[[], str] = _new_doc_id,
        clock: Callable[[], str] = _utc_now,
    ) -> None:
        if embed_workers < 1:
            raise ValueError("embed_workers must be >= 1")
        self._embedder = embedder
        self._index = index
        self._registry = registry
        self.max_chunk_size = max_chunk_size
        self.preview_chars = preview_chars
        self.embed_workers = embed_workers
        self._id_factory = id_factory
        self._clock = clock

    def ingest(self, file_name: str, raw_text: str) -> Document:
        """Ingest *raw_text* under *file_name* and return the new Document.

        Raises:
            EmptyContent: If the text yields no chunks.
            EmbeddingUnavailable, IndexWriteFailed, StorageUnavailable:
                Propagated from the collaborators; the request is aborted.
        """
        doc_id = self._id_factory()
        chunks = make_chunks(doc_id, split_into_chunks(raw_text, self.max_chunk_size))
        if not chunks:
            raise EmptyContent()

        logger.debug("Chunked %s into %d chunks (doc %s)", file_name, len(chunks), doc_id)

        embeddings = self._embed_all(chunks)
        entries = [
            self._make_entry(chunk, file_name, embedding)
            for chunk, embedding in zip(chunks, embeddings)
        ]
        self._index.upsert(entries)

        document = Document(
            id=doc_id,
            file_name=file_name,
            chunk_count=len(chunks),
            uploaded_at=self._clock(),
        )
        self._registry.put(document)

        logger.info("Ingested %s as %s (%d chunks)", file_name, doc_id, len(chunks))
        return document

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _embed_all(self, chunks: list[Chunk]) -> list[list[float]]:
        """Embed every chunk; result order matches *chunks* order."""
        texts = [c.text for c in chunks]
        if self.embed_workers == 1 or len(texts) == 1:
            return [self._embedder.embed(t) for t in texts]
        with ThreadPoolExecutor(max_workers=self.embed_workers) as pool:
            return list(pool.map(self._embedder.embed, texts))

    def _make_entry(self, chunk: Chunk, file_name: str, embedding: list[float]) -> VectorEntry:
        return VectorEntry(
            id=chunk.vector_id,
            embedding=embedding,
            metadata={
                "docId": chunk.doc_id,
                "fileName": file_name,
                "chunkIndex": chunk.chunk_index,
                "text": chunk.preview(self.preview_chars),
                "fullText": chunk.text,
            },
        )
