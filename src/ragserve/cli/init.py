"""ragserve init — create the global config and an empty database."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from ragserve.cli.common import console, load_cli_config, open_services
from ragserve.config import ensure_global_config


def init_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the ragserve database."),
    ] = None,
) -> None:
    """Create ~/.ragserve/config.yaml (if missing) and initialise the database."""
    config_path = ensure_global_config()
    console.print(f"[green]✓[/] Global config: {config_path}")

    cfg = load_cli_config(db)
    services = open_services(cfg, must_exist=False)
    services.close()
    console.print(
        f"[green]✓[/] Database ready: {cfg.storage.db_path}  "
        f"[dim](embedding: {cfg.embedding.model}, {cfg.embedding.dimensions} dims)[/]"
    )
