"""Shared pytest fixtures: temporary SQLite database and in-memory fakes for
the four capabilities (embedding, generation, vector index, registry)."""

from __future__ import annotations

import math
import threading

import pytest

from ragserve.db.connection import Database
from ragserve.db.index import SqliteVectorIndex
from ragserve.db.models import Document, VectorEntry, VectorMatch
from ragserve.db.registry import SqliteDocumentRegistry
from ragserve.db.schema import initialize
from ragserve.db.vectors import ensure_vec_table
from ragserve.errors import (
    EmbeddingUnavailable,
    GenerationUnavailable,
    IndexQueryFailed,
    IndexWriteFailed,
    StorageUnavailable,
)
from ragserve.interfaces import DocumentRegistry, EmbeddingClient, GenerationClient, VectorIndex

DIMS = 8


class FakeEmbedder(EmbeddingClient):
    """Deterministic letter-histogram embedding; similar texts → similar vectors."""

    def __init__(self, dims: int = DIMS) -> None:
        self.dims = dims
        self.calls: list[str] = []
        self.fail = False

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise EmbeddingUnavailable()
        vec = [0.0] * self.dims
        for ch in text.lower():
            if ch.isalnum():
                vec[ord(ch) % self.dims] += 1.0
        vec[0] += 0.01  # never the zero vector
        return vec


class FakeGenerator(GenerationClient):
    def __init__(self, answer: str = "Generated answer [Document 1].") -> None:
        self.answer = answer
        self.calls: list[tuple[str, str, int]] = []
        self.fail = False

    def generate(self, system_prompt: str, user_text: str, max_tokens: int) -> str:
        self.calls.append((system_prompt, user_text, max_tokens))
        if self.fail:
            raise GenerationUnavailable()
        return self.answer


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorIndex(VectorIndex):
    def __init__(self) -> None:
        self.entries: dict[str, VectorEntry] = {}
        self.upsert_calls: list[list[VectorEntry]] = []
        self.delete_calls: list[list[str]] = []
        self.fail_writes = False
        self.fail_queries = False

    def upsert(self, entries: list[VectorEntry]) -> None:
        if self.fail_writes:
            raise IndexWriteFailed()
        self.upsert_calls.append(list(entries))
        for entry in entries:
            self.entries[entry.id] = entry

    def query(self, vector: list[float], top_k: int) -> list[VectorMatch]:
        if self.fail_queries:
            raise IndexQueryFailed()
        scored = [
            VectorMatch(id=e.id, score=_cosine(vector, e.embedding), metadata=dict(e.metadata))
            for e in self.entries.values()
        ]
        scored.sort(key=lambda m: m.score, reverse=True)
        return scored[:top_k]

    def delete(self, ids: list[str]) -> None:
        if self.fail_writes:
            raise IndexWriteFailed()
        self.delete_calls.append(list(ids))
        for vid in ids:
            self.entries.pop(vid, None)


class InMemoryRegistry(DocumentRegistry):
    def __init__(self) -> None:
        self.docs: dict[str, Document] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise StorageUnavailable()

    def put(self, document: Document) -> None:
        self._check()
        self.docs[document.id] = document

    def get(self, doc_id: str) -> Document | None:
        self._check()
        return self.docs.get(doc_id)

    def list(self) -> list[Document]:
        self._check()
        return list(self.docs.values())

    def delete(self, doc_id: str) -> None:
        self._check()
        self.docs.pop(doc_id, None)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".ragserve.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def db_lock():
    """Lock shared by every adapter on tmp_db."""
    return threading.Lock()


@pytest.fixture
def sqlite_index(tmp_db, db_lock):
    table = ensure_vec_table(tmp_db, "fake_embedder", DIMS)
    return SqliteVectorIndex(tmp_db, table, DIMS, db_lock)


@pytest.fixture
def sqlite_registry(tmp_db, db_lock):
    return SqliteDocumentRegistry(tmp_db, db_lock)


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def memory_index():
    return InMemoryVectorIndex()


@pytest.fixture
def memory_registry():
    return InMemoryRegistry()
