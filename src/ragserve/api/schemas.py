"""Request and response bodies for the HTTP API (camelCase on the wire)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ragserve.db.models import Document, QueryResult, RetrievedChunk

MAX_TOP_K = 50


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QueryRequest(_CamelModel):
    query: str | None = ""
    top_k: int = Field(default=3, ge=1, le=MAX_TOP_K)


class DocumentModel(_CamelModel):
    id: str
    file_name: str
    chunk_count: int
    uploaded_at: str

    @classmethod
    def from_document(cls, doc: Document) -> DocumentModel:
        return cls(
            id=doc.id,
            file_name=doc.file_name,
            chunk_count=doc.chunk_count,
            uploaded_at=doc.uploaded_at,
        )


class RetrievedModel(_CamelModel):
    text: str
    file_name: str
    score: float

    @classmethod
    def from_chunk(cls, chunk: RetrievedChunk) -> RetrievedModel:
        return cls(text=chunk.text, file_name=chunk.file_name, score=chunk.score)


class QueryResponse(_CamelModel):
    query: str
    retrieved: list[RetrievedModel]
    response: str

    @classmethod
    def from_result(cls, result: QueryResult) -> QueryResponse:
        return cls(
            query=result.query,
            retrieved=[RetrievedModel.from_chunk(c) for c in result.retrieved],
            response=result.response,
        )


class UploadResponse(_CamelModel):
    success: bool = True
    document: DocumentModel
    message: str


class DocumentListResponse(_CamelModel):
    documents: list[DocumentModel]


class DeleteResponse(_CamelModel):
    success: bool = True
    message: str


class HealthResponse(_CamelModel):
    status: str
    timestamp: str
