"""Document lifecycle: list, look up, and remove registered documents.

Removal deletes the vectors first and the registry record second, mirroring
ingestion order: a registry record never points at vectors that were never
written. A failure after the vector delete leaves a record whose vectors are
gone; that gap is accepted.
"""

from __future__ import annotations

import logging

from ragserve.db.models import Document
from ragserve.errors import NotFound
from ragserve.interfaces import DocumentRegistry, VectorIndex

logger = logging.getLogger(__name__)


def list_documents(registry: DocumentRegistry) -> list[Document]:
    """Return every registered document (callers must not rely on order)."""
    return registry.list()


def get_document(doc_id: str, registry: DocumentRegistry) -> Document:
    """Return the document for *doc_id*.

    Raises:
        NotFound: If no document is registered under *doc_id*.
    """
    document = registry.get(doc_id)
    if document is None:
        raise NotFound()
    return document


def delete_document(doc_id: str, index: VectorIndex, registry: DocumentRegistry) -> Document:
    """Delete *doc_id* and all of its vector entries. Returns the removed Document.

    Raises:
        NotFound: If no document is registered under *doc_id*.
    """
    document = get_document(doc_id, registry)

    index.delete(document.vector_ids())
    registry.delete(doc_id)

    logger.info(
        "Deleted document %s (%s, %d vectors)",
        doc_id,
        document.file_name,
        document.chunk_count,
    )
    return document
