"""ragserve serve — run the HTTP API with uvicorn."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import uvicorn

from ragserve.api.app import create_app
from ragserve.cli.common import console, load_cli_config, open_services
from ragserve.cli.errors import err_no_api_key
from ragserve.log import configure_logging
from ragserve.rag.llm_client import validate_api_key


def serve_cmd(
    host: Annotated[
        str | None,
        typer.Option("--host", help="Bind address (default from config)."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Bind port (default from config)."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the ragserve database (created if missing)."),
    ] = None,
) -> None:
    """Start the RAG HTTP API."""
    cfg = load_cli_config(db)
    if host:
        cfg.server.host = host
    if port:
        cfg.server.port = port

    for model in (cfg.embedding.model, cfg.generation.model):
        try:
            validate_api_key(model)
        except EnvironmentError:
            console.print(err_no_api_key(model))
            raise typer.Exit(1)

    configure_logging(cfg.logging.level)
    services = open_services(cfg, must_exist=False)
    app = create_app(services)

    console.print(
        f"[green]✓[/] Serving on http://{cfg.server.host}:{cfg.server.port}  "
        f"[dim](db: {cfg.storage.db_path})[/]"
    )
    uvicorn.run(app, host=cfg.server.host, port=cfg.server.port, log_config=None)
