"""Shared CLI helpers: config loading with --db override, service wiring."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from ragserve.cli.errors import err_config, err_no_db
from ragserve.config import ConfigError, RagConfig, load_config
from ragserve.services import Services, build_services

console = Console()


def load_cli_config(db: Path | None) -> RagConfig:
    """Load config, apply the --db flag, and exit 1 on a ConfigError."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    if db is not None:
        cfg.storage.db_path = str(db)
    return cfg


def open_services(cfg: RagConfig, *, must_exist: bool = True) -> Services:
    """Wire services for *cfg*; exit 1 if the database is required but missing."""
    if must_exist and not Path(cfg.storage.db_path).exists():
        console.print(err_no_db(cfg.storage.db_path))
        raise typer.Exit(1)
    return build_services(cfg)
