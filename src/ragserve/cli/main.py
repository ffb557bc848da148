"""ragserve CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from ragserve.cli.documents import documents_cmd, remove_cmd
from ragserve.cli.ingest import ingest_cmd
from ragserve.cli.init import init_cmd
from ragserve.cli.query import query_cmd
from ragserve.cli.serve import serve_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("ragserve")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ragserve {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="ragserve",
    help=(
        "ragserve — retrieval-augmented question answering over your documents.\n\n"
        "  ragserve ingest   Chunk, embed, and register text files.\n"
        "  ragserve serve    Run the HTTP API."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """ragserve — retrieval-augmented question answering over your documents."""


app.command("init")(init_cmd)
app.command("ingest")(ingest_cmd)
app.command("query")(query_cmd)
app.command("documents")(documents_cmd)
app.command("remove")(remove_cmd)
app.command("serve")(serve_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed ragserve version."""
    typer.echo(f"ragserve {_installed_version()}")


if __name__ == "__main__":
    app()
