"""Service wiring: build the concrete adapters from config and hand them to
the pipelines.

Both the HTTP app and the CLI go through ``build_services()``; nothing in
the pipelines reads configuration or globals.
"""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path

from ragserve.config import RagConfig
from ragserve.db.connection import Database
from ragserve.db.index import SqliteVectorIndex
from ragserve.db.registry import SqliteDocumentRegistry
from ragserve.db.schema import initialize
from ragserve.db.vectors import ensure_vec_table, model_to_slug
from ragserve.ingest.pipeline import IngestionPipeline
from ragserve.interfaces import (
    DocumentRegistry,
    EmbeddingClient,
    GenerationClient,
    VectorIndex,
)
from ragserve.rag.llm_client import LiteLLMEmbeddingClient, LiteLLMGenerationClient
from ragserve.rag.pipeline import QueryPipeline


@dataclass
class Services:
    """Everything a request handler needs, wired once at startup."""

    config: RagConfig
    registry: DocumentRegistry
    index: VectorIndex
    ingestion: IngestionPipeline
    queries: QueryPipeline
    conn: sqlite3.Connection | None = None

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None


def open_database(db_path: Path | str) -> sqlite3.Connection:
    """Open (or create) the database and run migrations."""
    conn = Database(db_path).connect()
    initialize(conn)
    return conn


def wire(
    config: RagConfig,
    *,
    registry: DocumentRegistry,
    index: VectorIndex,
    embedder: EmbeddingClient,
    generator: GenerationClient,
    conn: sqlite3.Connection | None = None,
) -> Services:
    """Assemble the pipelines around already-built capabilities."""
    ingestion = IngestionPipeline(
        embedder,
        index,
        registry,
        max_chunk_size=config.chunking.max_chunk_size,
        preview_chars=config.chunking.preview_chars,
        embed_workers=config.ingest.embed_workers,
    )
    queries = QueryPipeline(
        embedder,
        index,
        generator,
        max_tokens=config.generation.max_tokens,
    )
    return Services(
        config=config,
        registry=registry,
        index=index,
        ingestion=ingestion,
        queries=queries,
        conn=conn,
    )


def build_services(
    config: RagConfig,
    *,
    embedder: EmbeddingClient | None = None,
    generator: GenerationClient | None = None,
) -> Services:
    """Open the SQLite store and wire LiteLLM-backed pipelines.

    *embedder* and *generator* default to the LiteLLM adapters for the
    configured models; pass replacements to run without a model provider.
    """
    conn = open_database(config.storage.db_path)
    table = ensure_vec_table(
        conn, model_to_slug(config.embedding.model), config.embedding.dimensions
    )
    # One lock per connection: both adapters commit through it.
    lock = threading.Lock()
    return wire(
        config,
        registry=SqliteDocumentRegistry(conn, lock),
        index=SqliteVectorIndex(conn, table, config.embedding.dimensions, lock),
        embedder=embedder
        or LiteLLMEmbeddingClient(config.embedding.model, config.embedding.num_retries),
        generator=generator
        or LiteLLMGenerationClient(
            config.generation.model,
            temperature=config.generation.temperature,
            num_retries=config.generation.num_retries,
        ),
        conn=conn,
    )
