"""Tests for ragserve config loader."""

from __future__ import annotations

import stat
import warnings
from pathlib import Path

import pytest
import yaml

from ragserve.config import (
    _API_KEY_RE,
    ConfigError,
    RagConfig,
    ensure_global_config,
    load_config,
)

_ENV_VARS = (
    "RAGSERVE_HOST",
    "RAGSERVE_PORT",
    "RAGSERVE_DB_PATH",
    "RAGSERVE_EMBEDDING_MODEL",
    "RAGSERVE_GENERATION_MODEL",
    "RAGSERVE_LOG_LEVEL",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


def _load(tmp_path: Path, global_cfg: Path | None = None) -> RagConfig:
    return load_config(
        project_dir=tmp_path,
        global_config_path=global_cfg or tmp_path / "nonexistent" / "config.yaml",
    )


# ---------------------------------------------------------------------------
# Defaults — no config files present
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    """No config files → all hardcoded defaults."""
    cfg = _load(tmp_path)

    assert cfg.server.host == "127.0.0.1"
    assert cfg.server.port == 8787
    assert cfg.storage.db_path == ".ragserve.db"
    assert cfg.embedding.model == "openai/text-embedding-3-small"
    assert cfg.embedding.dimensions == 1536
    assert cfg.generation.model == "openai/gpt-4o-mini"
    assert cfg.generation.max_tokens == 500
    assert cfg.chunking.max_chunk_size == 500
    assert cfg.chunking.preview_chars == 1_000
    assert cfg.ingest.embed_workers == 1
    assert cfg.retrieval.top_k == 3
    assert cfg.logging.level == "INFO"


def test_load_config_defaults_to_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    _write_yaml(tmp_path / "ragserve.yaml", {"retrieval": {"top_k": 7}})
    cfg = load_config(global_config_path=tmp_path / "missing.yaml")
    assert cfg.retrieval.top_k == 7


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def test_load_config_global_overrides_defaults(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"generation": {"model": "anthropic/claude-3-5-haiku-20241022"}})

    cfg = _load(tmp_path, global_cfg)
    assert cfg.generation.model == "anthropic/claude-3-5-haiku-20241022"
    # Other defaults unchanged
    assert cfg.generation.max_tokens == 500
    assert cfg.embedding.model == "openai/text-embedding-3-small"


def test_load_config_global_empty_file(tmp_path: Path) -> None:
    """Empty global config file → defaults (no crash)."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("", encoding="utf-8")

    assert _load(tmp_path, global_cfg).generation.model == "openai/gpt-4o-mini"


def test_load_config_non_mapping_rejected(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        _load(tmp_path, global_cfg)


def test_load_config_empty_section_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / "ragserve.yaml").write_text("server:\nlogging:\n", encoding="utf-8")

    cfg = _load(tmp_path)
    assert cfg.server == RagConfig().server
    assert cfg.logging.level == RagConfig().logging.level


def test_load_config_empty_section_keeps_global_values(tmp_path: Path) -> None:
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"server": {"port": 9000}})
    (tmp_path / "ragserve.yaml").write_text("server:\n", encoding="utf-8")

    assert _load(tmp_path, global_cfg).server.port == 9000


def test_load_config_non_mapping_section_rejected(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "ragserve.yaml", {"server": 5})

    with pytest.raises(ConfigError, match="section 'server' must be a mapping"):
        _load(tmp_path)


def test_load_config_project_overrides_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"generation": {"model": "openai/gpt-4o", "max_tokens": 800}})
    _write_yaml(tmp_path / "ragserve.yaml", {"generation": {"model": "ollama/llama3"}})

    cfg = _load(tmp_path, global_cfg)
    assert cfg.generation.model == "ollama/llama3"
    # Deep merge keeps the global value the project file does not set
    assert cfg.generation.max_tokens == 800


def test_load_config_all_sections(tmp_path: Path) -> None:
    _write_yaml(
        tmp_path / "ragserve.yaml",
        {
            "server": {"host": "0.0.0.0", "port": 9000},
            "storage": {"db_path": "kb/rag.db"},
            "embedding": {"model": "ollama/nomic-embed-text", "dimensions": 768, "num_retries": 1},
            "generation": {"temperature": 0.3},
            "chunking": {"max_chunk_size": 800, "preview_chars": 200},
            "ingest": {"embed_workers": 4},
            "retrieval": {"top_k": 5},
            "logging": {"level": "debug"},
        },
    )

    cfg = _load(tmp_path)
    assert (cfg.server.host, cfg.server.port) == ("0.0.0.0", 9000)
    assert cfg.storage.db_path == "kb/rag.db"
    assert cfg.embedding.dimensions == 768
    assert cfg.embedding.num_retries == 1
    assert cfg.generation.temperature == 0.3
    assert cfg.chunking.max_chunk_size == 800
    assert cfg.chunking.preview_chars == 200
    assert cfg.ingest.embed_workers == 4
    assert cfg.retrieval.top_k == 5
    assert cfg.logging.level == "DEBUG"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "data, fragment",
    [
        ({"chunking": {"max_chunk_size": 0}}, "max_chunk_size"),
        ({"chunking": {"preview_chars": 0}}, "preview_chars"),
        ({"embedding": {"dimensions": 0}}, "dimensions"),
        ({"ingest": {"embed_workers": 0}}, "embed_workers"),
        ({"retrieval": {"top_k": 0}}, "top_k"),
        ({"logging": {"level": "LOUD"}}, "logging.level"),
    ],
)
def test_out_of_range_values_rejected(tmp_path: Path, data: dict, fragment: str) -> None:
    _write_yaml(tmp_path / "ragserve.yaml", data)
    with pytest.raises(ConfigError, match=fragment):
        _load(tmp_path)


# ---------------------------------------------------------------------------
# API key rejection
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "bad_key",
    ["api_key", "apikey", "OPENAI_API_KEY", "secret", "password", "token", "api-key"],
)
def test_global_config_rejects_api_key_fields(tmp_path: Path, bad_key: str) -> None:
    """Global config containing API key-like field names raises ConfigError."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text(f"{bad_key}: sk-abc123\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="forbidden key"):
        _load(tmp_path, global_cfg)


def test_global_config_rejects_nested_api_key(tmp_path: Path) -> None:
    global_cfg = tmp_path / "config.yaml"
    _write_yaml(global_cfg, {"generation": {"api_key": "sk-secret"}})

    with pytest.raises(ConfigError, match="generation.api_key"):
        _load(tmp_path, global_cfg)


def test_project_config_rejects_api_key(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "ragserve.yaml", {"embedding": {"auth_token": "abc"}})

    with pytest.raises(ConfigError, match="forbidden key"):
        _load(tmp_path)


def test_max_tokens_is_not_an_api_key(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "ragserve.yaml", {"generation": {"max_tokens": 256}})
    assert _load(tmp_path).generation.max_tokens == 256


# ---------------------------------------------------------------------------
# Unknown key warnings
# ---------------------------------------------------------------------------


def test_unknown_top_level_key_warns(tmp_path: Path) -> None:
    """Unknown top-level key in config emits UserWarning (not error)."""
    _write_yaml(tmp_path / "ragserve.yaml", {"unknown_section": {"foo": "bar"}})

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        cfg = _load(tmp_path)

    assert any("unknown_section" in str(w.message) for w in caught)
    assert cfg.generation.model == "openai/gpt-4o-mini"


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------


def test_env_vars_override_files(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_yaml(
        tmp_path / "ragserve.yaml",
        {"server": {"port": 9000}, "generation": {"model": "openai/gpt-4o"}},
    )
    monkeypatch.setenv("RAGSERVE_HOST", "0.0.0.0")
    monkeypatch.setenv("RAGSERVE_PORT", "9100")
    monkeypatch.setenv("RAGSERVE_DB_PATH", "/data/rag.db")
    monkeypatch.setenv("RAGSERVE_EMBEDDING_MODEL", "cohere/embed-english-v3.0")
    monkeypatch.setenv("RAGSERVE_GENERATION_MODEL", "groq/llama3-70b")
    monkeypatch.setenv("RAGSERVE_LOG_LEVEL", "warning")

    cfg = _load(tmp_path)
    assert cfg.server.host == "0.0.0.0"
    assert cfg.server.port == 9100
    assert cfg.storage.db_path == "/data/rag.db"
    assert cfg.embedding.model == "cohere/embed-english-v3.0"
    assert cfg.generation.model == "groq/llama3-70b"
    assert cfg.logging.level == "WARNING"


def test_env_var_bad_port(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RAGSERVE_PORT", "eighty")
    with pytest.raises(ConfigError, match="RAGSERVE_PORT"):
        _load(tmp_path)


def test_env_var_bad_log_level(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RAGSERVE_LOG_LEVEL", "chatty")
    with pytest.raises(ConfigError, match="logging.level"):
        _load(tmp_path)


def test_empty_env_var_does_not_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RAGSERVE_GENERATION_MODEL", "")
    assert _load(tmp_path).generation.model == "openai/gpt-4o-mini"


# ---------------------------------------------------------------------------
# ensure_global_config
# ---------------------------------------------------------------------------


def test_ensure_global_config_creates_file(tmp_path: Path) -> None:
    target = tmp_path / ".ragserve" / "config.yaml"
    result = ensure_global_config(global_config_path=target)

    assert result == target
    content = target.read_text(encoding="utf-8")
    assert "embedding" in content
    assert "generation" in content

    # The parsed YAML (not the comments) must not contain API key fields
    parsed = yaml.safe_load(content) or {}

    def _no_api_keys(obj: object) -> bool:
        if isinstance(obj, dict):
            return all(
                not _API_KEY_RE.search(str(k)) and _no_api_keys(v) for k, v in obj.items()
            )
        return True

    assert _no_api_keys(parsed)


def test_ensure_global_config_loads_cleanly(tmp_path: Path) -> None:
    target = ensure_global_config(global_config_path=tmp_path / ".ragserve" / "config.yaml")
    cfg = _load(tmp_path, target)
    assert cfg.embedding.dimensions == 1536


def test_ensure_global_config_file_mode(tmp_path: Path) -> None:
    """ensure_global_config creates file with mode 0o600 (owner-only)."""
    target = tmp_path / ".ragserve" / "config.yaml"
    ensure_global_config(global_config_path=target)

    assert stat.S_IMODE(target.stat().st_mode) == 0o600


def test_ensure_global_config_idempotent(tmp_path: Path) -> None:
    """Calling ensure_global_config twice does not overwrite existing file."""
    target = tmp_path / ".ragserve" / "config.yaml"
    ensure_global_config(global_config_path=target)
    target.write_text("# custom\ngeneration:\n  model: ollama/llama3\n", encoding="utf-8")

    ensure_global_config(global_config_path=target)
    assert "ollama/llama3" in target.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# yaml.safe_load enforcement (regression guard)
# ---------------------------------------------------------------------------


def test_config_does_not_execute_yaml_load(tmp_path: Path) -> None:
    """Config loader uses safe_load — python object tags raise instead of running."""
    global_cfg = tmp_path / "config.yaml"
    global_cfg.write_text("!!python/object/apply:os.system ['echo pwned']\n", encoding="utf-8")

    with pytest.raises(yaml.YAMLError):
        _load(tmp_path, global_cfg)
