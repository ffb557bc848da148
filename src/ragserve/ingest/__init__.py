"""ragserve ingest pipeline — chunker, ingestion, document lifecycle."""

from ragserve.ingest.chunker import Chunk, make_chunks, split_into_chunks, vector_id
from ragserve.ingest.lifecycle import delete_document, get_document, list_documents
from ragserve.ingest.pipeline import IngestionPipeline

__all__ = [
    "Chunk",
    "IngestionPipeline",
    "delete_document",
    "get_document",
    "list_documents",
    "make_chunks",
    "split_into_chunks",
    "vector_id",
]
