"""ragserve database layer."""

from ragserve.db.connection import Database
from ragserve.db.migrations import MIGRATIONS, run_migrations
from ragserve.db.schema import initialize
from ragserve.db.vectors import ensure_vec_table, model_to_slug, vec_table_name

__all__ = [
    "Database",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "ensure_vec_table",
    "model_to_slug",
    "vec_table_name",
]
