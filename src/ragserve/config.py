"""ragserve configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (RAGSERVE_*)
  3. Per-project ragserve.yaml  (working directory)
  4. Global ~/.ragserve/config.yaml
  5. Hardcoded defaults

Config files must never contain API keys; use the provider's environment
variable instead (OPENAI_API_KEY, ...).
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".ragserve"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "ragserve.yaml"

# Fields that suggest an API key — forbidden in config files.
# Matches: api_key, apikey, api-key, api_secret, _token (suffix), standalone token,
# standalone secret, _secret (suffix), password, passwd, credential(s).
# Does NOT match legitimate config keys like max_tokens.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"  # api_key, api-key, api_secret, apikey
    r"|_token$"                  # github_token, access_token, auth_token (suffix)
    r"|^token$"                  # exactly "token" (standalone)
    r"|_secret$"                 # my_secret, client_secret (suffix)
    r"|^secret$"                 # exactly "secret" (standalone)
    r"|passw(?:ord|d)"           # password, passwd
    r"|credential",              # credential, credentials
    re.IGNORECASE,
)

# Known top-level sections — unknown keys produce a warning
_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["server", "storage", "embedding", "generation", "chunking", "ingest", "retrieval", "logging"]
)

_LOG_LEVELS: frozenset[str] = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class ServerCfg:
    """HTTP server binding (ragserve.yaml: server:)."""

    host: str = "127.0.0.1"
    port: int = 8787


@dataclass
class StorageCfg:
    """SQLite database holding the registry and the vector index (storage:)."""

    db_path: str = ".ragserve.db"


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (ragserve.yaml: embedding:).

    Attributes:
        model: LiteLLM embedding model string (provider/model).
        dimensions: Vector length produced by *model*; fixes the vec table shape.
        num_retries: LiteLLM retries on transient errors.
    """

    model: str = "openai/text-embedding-3-small"
    dimensions: int = 1536
    num_retries: int = 3


@dataclass
class GenerationCfg:
    """LLM generation configuration (ragserve.yaml: generation:)."""

    model: str = "openai/gpt-4o-mini"
    max_tokens: int = 500
    temperature: float = 0.0
    num_retries: int = 3


@dataclass
class ChunkingCfg:
    """Chunker limits (ragserve.yaml: chunking:)."""

    max_chunk_size: int = 500
    preview_chars: int = 1_000


@dataclass
class IngestCfg:
    """Ingestion tuning (ragserve.yaml: ingest:)."""

    embed_workers: int = 1


@dataclass
class RetrievalCfg:
    """Retrieval defaults (ragserve.yaml: retrieval:)."""

    top_k: int = 3


@dataclass
class LoggingCfg:
    """Log output (ragserve.yaml: logging:)."""

    level: str = "INFO"


@dataclass
class RagConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    server: ServerCfg = field(default_factory=ServerCfg)
    storage: StorageCfg = field(default_factory=StorageCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    ingest: IngestCfg = field(default_factory=IngestCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: RagConfig) -> None:
    """Raise ConfigError for out-of-range values."""
    if cfg.chunking.max_chunk_size < 1:
        raise ConfigError("chunking.max_chunk_size must be >= 1")
    if cfg.chunking.preview_chars < 1:
        raise ConfigError("chunking.preview_chars must be >= 1")
    if cfg.embedding.dimensions < 1:
        raise ConfigError("embedding.dimensions must be >= 1")
    if cfg.ingest.embed_workers < 1:
        raise ConfigError("ingest.embed_workers must be >= 1")
    if cfg.retrieval.top_k < 1:
        raise ConfigError("retrieval.top_k must be >= 1")
    if cfg.logging.level.upper() not in _LOG_LEVELS:
        raise ConfigError(
            f"logging.level must be one of {', '.join(sorted(_LOG_LEVELS))}, "
            f"got '{cfg.logging.level}'"
        )


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if v is None and isinstance(result.get(k), dict):
            continue  # empty section keeps the lower layer
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """Return section *name*; an empty section (``server:``) reads as ``{}``."""
    value = data[name]
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(
            f"Config section '{name}' must be a mapping, got {type(value).__name__}"
        )
    return value


def _cfg_from_dict(data: dict[str, Any]) -> RagConfig:
    """Build a *RagConfig* from a merged raw YAML dict."""
    cfg = RagConfig()

    if "server" in data:
        s = _section(data, "server")
        cfg.server = ServerCfg(
            host=str(s.get("host", cfg.server.host)),
            port=int(s.get("port", cfg.server.port)),
        )

    if "storage" in data:
        st = _section(data, "storage")
        cfg.storage = StorageCfg(db_path=str(st.get("db_path", cfg.storage.db_path)))

    if "embedding" in data:
        e = _section(data, "embedding")
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            dimensions=int(e.get("dimensions", cfg.embedding.dimensions)),
            num_retries=int(e.get("num_retries", cfg.embedding.num_retries)),
        )

    if "generation" in data:
        g = _section(data, "generation")
        cfg.generation = GenerationCfg(
            model=str(g.get("model", cfg.generation.model)),
            max_tokens=int(g.get("max_tokens", cfg.generation.max_tokens)),
            temperature=float(g.get("temperature", cfg.generation.temperature)),
            num_retries=int(g.get("num_retries", cfg.generation.num_retries)),
        )

    if "chunking" in data:
        c = _section(data, "chunking")
        cfg.chunking = ChunkingCfg(
            max_chunk_size=int(c.get("max_chunk_size", cfg.chunking.max_chunk_size)),
            preview_chars=int(c.get("preview_chars", cfg.chunking.preview_chars)),
        )

    if "ingest" in data:
        i = _section(data, "ingest")
        cfg.ingest = IngestCfg(
            embed_workers=int(i.get("embed_workers", cfg.ingest.embed_workers)),
        )

    if "retrieval" in data:
        r = _section(data, "retrieval")
        cfg.retrieval = RetrievalCfg(top_k=int(r.get("top_k", cfg.retrieval.top_k)))

    if "logging" in data:
        lg = _section(data, "logging")
        cfg.logging = LoggingCfg(level=str(lg.get("level", cfg.logging.level)).upper())

    return cfg


def _apply_env_overrides(cfg: RagConfig) -> RagConfig:
    """Apply RAGSERVE_* environment variable overrides (layer 2)."""
    if host := os.environ.get("RAGSERVE_HOST"):
        cfg.server.host = host
    if port := os.environ.get("RAGSERVE_PORT"):
        try:
            cfg.server.port = int(port)
        except ValueError as exc:
            raise ConfigError(f"RAGSERVE_PORT must be an integer, got '{port}'") from exc
    if db_path := os.environ.get("RAGSERVE_DB_PATH"):
        cfg.storage.db_path = db_path
    if model := os.environ.get("RAGSERVE_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if model := os.environ.get("RAGSERVE_GENERATION_MODEL"):
        cfg.generation.model = model
    if level := os.environ.get("RAGSERVE_LOG_LEVEL"):
        cfg.logging.level = level.upper()
    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config '{path}' must be a YAML mapping.")
    return raw


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> RagConfig:
    """Load and return a merged *RagConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *ragserve.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *RagConfig* with env var overrides applied.

    Raises:
        ConfigError: If a config file contains API-key-like fields or a value
            is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _check_no_api_keys(raw_project, project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)

    _validate(cfg)
    return cfg


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.ragserve/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).

    Args:
        global_config_path: Override path (for testing).

    Returns:
        Path to the global config file.
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# ragserve global configuration — model defaults only.\n"
            "# NEVER store API keys here — use environment variables:\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "\n"
            "embedding:\n"
            "  model: openai/text-embedding-3-small\n"
            "  dimensions: 1536\n"
            "\n"
            "generation:\n"
            "  model: openai/gpt-4o-mini\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
