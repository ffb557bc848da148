"""Capability interfaces consumed by the ingestion and query pipelines.

The pipelines depend only on these ABCs. Concrete adapters:

  EmbeddingClient   → ragserve.rag.llm_client.LiteLLMEmbeddingClient
  GenerationClient  → ragserve.rag.llm_client.LiteLLMGenerationClient
  VectorIndex       → ragserve.db.index.SqliteVectorIndex
  DocumentRegistry  → ragserve.db.registry.SqliteDocumentRegistry
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ragserve.db.models import Document, VectorEntry, VectorMatch


class EmbeddingClient(ABC):
    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Return the embedding vector for *text*.

        Raises:
            EmbeddingUnavailable: If the embedding service fails.
        """


class GenerationClient(ABC):
    @abstractmethod
    def generate(self, system_prompt: str, user_text: str, max_tokens: int) -> str:
        """Return the model's answer to *user_text* under *system_prompt*.

        Raises:
            GenerationUnavailable: If the language model fails.
        """


class VectorIndex(ABC):
    @abstractmethod
    def upsert(self, entries: list[VectorEntry]) -> None:
        """Insert or replace *entries* as one batch.

        Raises:
            IndexWriteFailed: If the batch could not be written.
        """

    @abstractmethod
    def query(self, vector: list[float], top_k: int) -> list[VectorMatch]:
        """Return up to *top_k* nearest entries, highest score first.

        Raises:
            IndexQueryFailed: If the search fails.
        """

    @abstractmethod
    def delete(self, ids: list[str]) -> None:
        """Delete entries by id; unknown ids are ignored.

        Raises:
            IndexWriteFailed: If the deletion fails.
        """


class DocumentRegistry(ABC):
    """Key → Document store. All methods raise StorageUnavailable on failure."""

    @abstractmethod
    def put(self, document: Document) -> None: ...

    @abstractmethod
    def get(self, doc_id: str) -> Document | None: ...

    @abstractmethod
    def list(self) -> list[Document]: ...

    @abstractmethod
    def delete(self, doc_id: str) -> None: ...
