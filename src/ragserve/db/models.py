"""Domain models shared by the registry, the vector index, and the pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Document:
    id: str
    file_name: str
    chunk_count: int
    uploaded_at: str  # ISO-8601, UTC

    def vector_ids(self) -> list[str]:
        """Ids of every vector entry this document owns."""
        return [f"{self.id}-{i}" for i in range(self.chunk_count)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "fileName": self.file_name,
            "chunkCount": self.chunk_count,
            "uploadedAt": self.uploaded_at,
        }


@dataclass
class VectorEntry:
    id: str
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorMatch:
    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class RetrievedChunk:
    text: str
    file_name: str
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "fileName": self.file_name, "score": self.score}


@dataclass
class QueryResult:
    query: str
    retrieved: list[RetrievedChunk]
    response: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "retrieved": [r.to_dict() for r in self.retrieved],
            "response": self.response,
        }
