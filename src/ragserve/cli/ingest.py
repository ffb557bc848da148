"""ragserve ingest — chunk, embed, and register text files.

Usage:
  ragserve ingest --file notes.txt
  ragserve ingest --file a.md --file b.txt --db ./kb.db
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from ragserve.cli.common import console, load_cli_config, open_services
from ragserve.cli.errors import err_empty_file, err_file_not_found, err_service
from ragserve.errors import CollaboratorError, EmptyContent


def ingest_cmd(
    file: Annotated[
        list[Path] | None,
        typer.Option("--file", "-f", help="Text file to ingest (repeatable)."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the ragserve database (created if missing)."),
    ] = None,
) -> None:
    """Ingest one or more text files into the knowledge base."""
    files = file or []
    if not files:
        console.print("[red]Error:[/] No --file specified. Use --file PATH.")
        raise typer.Exit(1)

    cfg = load_cli_config(db)
    services = open_services(cfg, must_exist=False)
    failed = 0

    try:
        for path in files:
            if not path.is_file():
                console.print(err_file_not_found(str(path)))
                failed += 1
                continue

            text = path.read_text(encoding="utf-8", errors="replace")
            console.print(f"\n[bold]→ {escape(str(path))}[/]")

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                transient=True,
                console=console,
            ) as prog:
                prog.add_task("Chunking and embedding…", total=None)
                try:
                    document = services.ingestion.ingest(path.name, text)
                except EmptyContent:
                    console.print(err_empty_file(str(path)))
                    continue
                except CollaboratorError as exc:
                    console.print(err_service(str(exc)))
                    failed += 1
                    continue

            console.print(
                f"  [green]✓[/] {document.chunk_count} chunks  ·  id [cyan]{document.id}[/]"
            )
    finally:
        services.close()

    if failed:
        raise typer.Exit(1)
