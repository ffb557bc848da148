"""CLI fixtures: isolated working directory/config and patched LiteLLM calls."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

CLI_DIMS = 4


def _fake_vector(text: str) -> list[float]:
    lower = text.lower()
    return [
        1.0,
        float(lower.count("refund")),
        float(lower.count("shipping")),
        float(len(lower) % 5),
    ]


def _fake_embedding(model, input, num_retries):
    response = MagicMock()
    response.data = [{"embedding": _fake_vector(input[0])}]
    return response


@pytest.fixture(autouse=True)
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every CLI test in tmp_path with a private global config."""
    for var in (
        "RAGSERVE_HOST",
        "RAGSERVE_PORT",
        "RAGSERVE_DB_PATH",
        "RAGSERVE_EMBEDDING_MODEL",
        "RAGSERVE_GENERATION_MODEL",
        "RAGSERVE_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("ragserve.config._GLOBAL_CONFIG_PATH", tmp_path / "home" / "config.yaml")
    (tmp_path / "ragserve.yaml").write_text(
        f"embedding:\n  dimensions: {CLI_DIMS}\n", encoding="utf-8"
    )
    return tmp_path


@pytest.fixture
def llm():
    """Patch litellm.embedding / litellm.completion; yields both mocks."""
    completion_response = MagicMock()
    completion_response.choices[0].message.content = "Refunds are accepted within 30 days."
    with patch(
        "ragserve.rag.llm_client.litellm.embedding", side_effect=_fake_embedding
    ) as mock_embedding, patch(
        "ragserve.rag.llm_client.litellm.completion", return_value=completion_response
    ) as mock_completion:
        yield mock_embedding, mock_completion
