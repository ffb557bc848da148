"""
FastAPI application for the RAG backend.

Routes:
  POST   /api/upload            multipart file → registered Document
  POST   /api/query             {query, topK} → QueryResult
  GET    /api/documents         → {documents: [...]}
  DELETE /api/documents/{id}    → {success, message}
  GET    /api/health            → {status, timestamp}

Every error leaves as ``{"error": message}`` with the status from the
ragserve.errors taxonomy.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ragserve.api.schemas import (
    DeleteResponse,
    DocumentListResponse,
    DocumentModel,
    HealthResponse,
    QueryRequest,
    QueryResponse,
    UploadResponse,
)
from ragserve.errors import RagError
from ragserve.ingest.lifecycle import delete_document, list_documents
from ragserve.services import Services

logger = logging.getLogger(__name__)


def get_services(request: Request) -> Services:
    return request.app.state.services


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status)


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RagError)
    async def rag_error_handler(request: Request, exc: RagError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.error(
                "%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc
            )
        return _error(exc.http_status, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"Invalid {field}: {first.get('msg', 'bad request')}" if field else "Bad request"
        return _error(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Internal Server Error")


def create_app(services: Services) -> FastAPI:
    """
    Create the FastAPI application around already-wired *services*.

    The app owns *services* for its lifetime and closes them on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("ragserve API ready (db: %s)", services.config.storage.db_path)
        yield
        services.close()
        logger.info("ragserve API stopped")

    app = FastAPI(
        title="ragserve",
        description="Retrieval-augmented question answering over uploaded documents",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    _install_error_handlers(app)

    @app.post("/api/upload", response_model=UploadResponse)
    def upload(
        file: UploadFile | None = File(default=None),
        svc: Services = Depends(get_services),
    ) -> UploadResponse:
        if file is None or not file.filename:
            return _error(400, "No file provided")
        text = file.file.read().decode("utf-8", errors="replace")
        document = svc.ingestion.ingest(file.filename, text)
        return UploadResponse(
            document=DocumentModel.from_document(document),
            message=f"Uploaded {document.file_name} with {document.chunk_count} chunks",
        )

    @app.post("/api/query", response_model=QueryResponse)
    def query(req: QueryRequest, svc: Services = Depends(get_services)) -> QueryResponse:
        result = svc.queries.query(req.query, top_k=req.top_k)
        return QueryResponse.from_result(result)

    @app.get("/api/documents", response_model=DocumentListResponse)
    def documents(svc: Services = Depends(get_services)) -> DocumentListResponse:
        return DocumentListResponse(
            documents=[DocumentModel.from_document(d) for d in list_documents(svc.registry)]
        )

    @app.delete("/api/documents/{doc_id}", response_model=DeleteResponse)
    def remove(doc_id: str, svc: Services = Depends(get_services)) -> DeleteResponse:
        document = delete_document(doc_id, svc.index, svc.registry)
        return DeleteResponse(message=f"Deleted document {document.file_name}")

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc).isoformat())

    return app
