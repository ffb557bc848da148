"""ragserve query — ask a question against the knowledge base."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from ragserve.cli.common import console, load_cli_config, open_services
from ragserve.cli.errors import err_service
from ragserve.errors import CollaboratorError, EmptyQuery


def query_cmd(
    text: Annotated[str, typer.Argument(help="The question to answer.")],
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", min=1, help="Chunks to retrieve (default from config)."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the ragserve database."),
    ] = None,
) -> None:
    """Answer a question from the ingested documents."""
    cfg = load_cli_config(db)
    services = open_services(cfg)

    try:
        result = services.queries.query(text, top_k=top_k or cfg.retrieval.top_k)
    except EmptyQuery as exc:
        console.print(f"[red]Error:[/] {exc}.")
        raise typer.Exit(1)
    except CollaboratorError as exc:
        console.print(err_service(str(exc)))
        raise typer.Exit(1)
    finally:
        services.close()

    console.print(f"\n{escape(result.response)}\n")

    if result.retrieved:
        table = Table(title="Sources", show_lines=False)
        table.add_column("#", justify="right")
        table.add_column("Document")
        table.add_column("Score", justify="right")
        table.add_column("Excerpt")
        for i, chunk in enumerate(result.retrieved, start=1):
            excerpt = chunk.text[:80].replace("\n", " ")
            table.add_row(str(i), escape(chunk.file_name), f"{chunk.score:.3f}", escape(excerpt))
        console.print(table)
