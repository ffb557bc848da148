"""SQLite implementation of the DocumentRegistry capability."""

from __future__ import annotations

import sqlite3
import threading

from ragserve.db.models import Document
from ragserve.errors import StorageUnavailable
from ragserve.interfaces import DocumentRegistry


class SqliteDocumentRegistry(DocumentRegistry):
    """Document records in the ``documents`` table.

    Wraps an open sqlite3.Connection owned by the caller. Every sqlite3 error
    surfaces as StorageUnavailable. Pass the *lock* shared by every adapter on
    that connection.
    """

    def __init__(
        self, conn: sqlite3.Connection, lock: threading.Lock | None = None
    ) -> None:
        self._conn = conn
        self._lock = lock or threading.Lock()

    def put(self, document: Document) -> None:
        """Insert or replace the record for ``document.id``."""
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    """
                    INSERT INTO documents (id, file_name, chunk_count, uploaded_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        file_name = excluded.file_name,
                        chunk_count = excluded.chunk_count,
                        uploaded_at = excluded.uploaded_at
                    """,
                    (document.id, document.file_name, document.chunk_count, document.uploaded_at),
                )
        except sqlite3.Error as exc:
            raise StorageUnavailable() from exc

    def get(self, doc_id: str) -> Document | None:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT id, file_name, chunk_count, uploaded_at FROM documents WHERE id = ?",
                    (doc_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageUnavailable() from exc
        return _row_to_document(row) if row else None

    def list(self) -> list[Document]:
        """Return all documents, oldest upload first."""
        try:
            with self._lock:
                rows = self._conn.execute(
                    "SELECT id, file_name, chunk_count, uploaded_at FROM documents "
                    "ORDER BY uploaded_at, id"
                ).fetchall()
        except sqlite3.Error as exc:
            raise StorageUnavailable() from exc
        return [_row_to_document(r) for r in rows]

    def delete(self, doc_id: str) -> None:
        try:
            with self._lock, self._conn:
                self._conn.execute("DELETE FROM documents WHERE id = ?", (doc_id,))
        except sqlite3.Error as exc:
            raise StorageUnavailable() from exc


def _row_to_document(row: sqlite3.Row) -> Document:
    return Document(
        id=row["id"],
        file_name=row["file_name"],
        chunk_count=row["chunk_count"],
        uploaded_at=row["uploaded_at"],
    )
