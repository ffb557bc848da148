"""SQLite + sqlite-vec implementation of the VectorIndex capability.

Vectors live in a ``vec0`` virtual table keyed by integer rowid; the string
entry id and its JSON metadata live in ``vector_entries`` under the same
rowid. A batch upsert or delete runs in a single transaction.
"""

from __future__ import annotations

import json
import sqlite3
import threading

from ragserve.db.models import VectorEntry, VectorMatch
from ragserve.errors import IndexQueryFailed, IndexWriteFailed
from ragserve.interfaces import VectorIndex


class SqliteVectorIndex(VectorIndex):
    """Nearest-neighbour index over one vec table.

    Args:
        conn: Open connection with sqlite-vec loaded and schema initialised.
        table: Vec table name returned by ``ensure_vec_table()``.
        dimensions: Expected embedding length; mismatching vectors are rejected.
        lock: Lock guarding *conn*. Every adapter on the same connection must
            hold the same lock, otherwise one adapter can commit the other's
            open transaction.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        table: str,
        dimensions: int,
        lock: threading.Lock | None = None,
    ) -> None:
        self._conn = conn
        self._table = table
        self._dimensions = dimensions
        self._lock = lock or threading.Lock()

    @property
    def table(self) -> str:
        return self._table

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert(self, entries: list[VectorEntry]) -> None:
        if not entries:
            return
        for entry in entries:
            self._check_dimensions(entry.embedding, IndexWriteFailed)

        try:
            with self._lock, self._conn:
                for entry in entries:
                    self._upsert_one(entry)
        except sqlite3.Error as exc:
            raise IndexWriteFailed(f"Failed to write {len(entries)} vectors") from exc

    def _upsert_one(self, entry: VectorEntry) -> None:
        metadata = json.dumps(entry.metadata)
        row = self._conn.execute(
            "SELECT rowid FROM vector_entries WHERE id = ?", (entry.id,)
        ).fetchone()

        if row is None:
            cur = self._conn.execute(
                "INSERT INTO vector_entries (id, metadata) VALUES (?, ?)",
                (entry.id, metadata),
            )
            rowid = cur.lastrowid
        else:
            rowid = row["rowid"]
            self._conn.execute(
                "UPDATE vector_entries SET metadata = ? WHERE rowid = ?",
                (metadata, rowid),
            )
            # vec0 has no UPDATE OR REPLACE on the vector column
            self._conn.execute(f"DELETE FROM {self._table} WHERE rowid = ?", (rowid,))

        self._conn.execute(
            f"INSERT INTO {self._table}(rowid, embedding) VALUES (?, ?)",
            (rowid, json.dumps(entry.embedding)),
        )

    def delete(self, ids: list[str]) -> None:
        if not ids:
            return
        placeholders = ",".join("?" * len(ids))
        try:
            with self._lock, self._conn:
                rowids = [
                    r[0]
                    for r in self._conn.execute(
                        f"SELECT rowid FROM vector_entries WHERE id IN ({placeholders})",
                        ids,
                    ).fetchall()
                ]
                if not rowids:
                    return
                rowid_marks = ",".join("?" * len(rowids))
                self._conn.execute(
                    f"DELETE FROM {self._table} WHERE rowid IN ({rowid_marks})",  # noqa: S608
                    rowids,
                )
                self._conn.execute(
                    f"DELETE FROM vector_entries WHERE rowid IN ({rowid_marks})",  # noqa: S608
                    rowids,
                )
        except sqlite3.Error as exc:
            raise IndexWriteFailed(f"Failed to delete {len(ids)} vectors") from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(self, vector: list[float], top_k: int) -> list[VectorMatch]:
        """Cosine nearest-neighbour search. Score = 1 - cosine distance."""
        self._check_dimensions(vector, IndexQueryFailed)
        if top_k < 1:
            return []
        try:
            with self._lock:
                vec_rows = self._conn.execute(
                    f"SELECT rowid, distance FROM {self._table} "
                    "WHERE embedding MATCH ? ORDER BY distance LIMIT ?",
                    (json.dumps(vector), top_k),
                ).fetchall()

                matches: list[VectorMatch] = []
                for vec_row in vec_rows:
                    entry = self._conn.execute(
                        "SELECT id, metadata FROM vector_entries WHERE rowid = ?",
                        (vec_row["rowid"],),
                    ).fetchone()
                    if entry is None:
                        continue
                    matches.append(
                        VectorMatch(
                            id=entry["id"],
                            score=1.0 - vec_row["distance"],
                            metadata=json.loads(entry["metadata"]),
                        )
                    )
        except sqlite3.Error as exc:
            raise IndexQueryFailed() from exc

        return matches

    def count(self) -> int:
        """Return the number of stored vector entries."""
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM vector_entries").fetchone()[0]

    def _check_dimensions(self, vector: list[float], error: type[Exception]) -> None:
        if len(vector) != self._dimensions:
            raise error(
                f"Embedding has {len(vector)} dimensions, index expects {self._dimensions}"
            )
