"""ragserve documents / remove — document lifecycle management.

Usage:
  ragserve documents
  ragserve remove --id 3f2c... --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from ragserve.cli.common import console, load_cli_config, open_services
from ragserve.cli.errors import err_document_not_found, err_service
from ragserve.errors import CollaboratorError, NotFound
from ragserve.ingest.lifecycle import delete_document, get_document, list_documents


def documents_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the ragserve database."),
    ] = None,
) -> None:
    """List all registered documents."""
    cfg = load_cli_config(db)
    services = open_services(cfg)
    try:
        docs = list_documents(services.registry)
    finally:
        services.close()

    if not docs:
        console.print("[dim]No documents yet. Run:  ragserve ingest --file <path>[/]")
        return

    table = Table(title=f"Documents ({len(docs)})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("File")
    table.add_column("Chunks", justify="right")
    table.add_column("Uploaded")
    for doc in docs:
        table.add_row(doc.id, escape(doc.file_name), str(doc.chunk_count), doc.uploaded_at)
    console.print(table)


def remove_cmd(
    doc_id: Annotated[
        str,
        typer.Option("--id", "-i", help="Document id to remove."),
    ],
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the ragserve database."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Remove a document and all of its vectors."""
    cfg = load_cli_config(db)
    services = open_services(cfg)

    try:
        try:
            document = get_document(doc_id, services.registry)
        except NotFound:
            console.print(err_document_not_found(doc_id))
            raise typer.Exit(1)

        console.print(f"\nRemove document: [bold]{escape(document.file_name)}[/] ({doc_id})")
        console.print(f"  Vector entries: {document.chunk_count}")

        if not yes:
            if not typer.confirm("Confirm removal?", default=False):
                console.print("[dim]Cancelled.[/]")
                raise typer.Exit(0)

        try:
            delete_document(doc_id, services.index, services.registry)
        except CollaboratorError as exc:
            console.print(err_service(str(exc)))
            raise typer.Exit(1)

        console.print(f"\n[green]✓[/] Removed: {escape(document.file_name)}")
    finally:
        services.close()
