"""ragserve rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from ragserve.cli.errors import err_no_db
    console.print(err_no_db(".ragserve.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from ragserve.rag.llm_client import provider_of


def err_no_api_key(model: str) -> str:
    """No API key for the provider of *model*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    provider = provider_of(model)
    env_map = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "cohere": "COHERE_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider, f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}' (model '{model}').\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_no_db(db_path: str = ".ragserve.db") -> str:
    """No database at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  ragserve init   or ingest a document first:  ragserve ingest --file <path>"
    )


def err_config(message: str) -> str:
    """Config file is invalid."""
    return f"[red]Error:[/] Invalid configuration.\n  {message}"


def err_file_not_found(path: str) -> str:
    return (
        f"[red]Error:[/] File not found: '{path}'\n"
        "  Check the path and try again."
    )


def err_empty_file(path: str) -> str:
    return f"[yellow]Skipped:[/] '{path}' contains no text content."


def err_document_not_found(doc_id: str) -> str:
    """Document id not in the registry."""
    return (
        f"[yellow]Document not found:[/] '{doc_id}' is not in the knowledge base.\n"
        "  Run:  ragserve documents  to see all registered documents."
    )


def err_service(message: str) -> str:
    """A model provider, the index, or the registry failed."""
    return (
        f"[red]Error:[/] {message}.\n"
        "  Check your API key, model names, and network access, then retry."
    )
