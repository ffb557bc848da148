"""Error taxonomy shared by the pipelines, adapters, and the HTTP router.

Every error carries the HTTP status the router answers with. Collaborator
errors (5xx) are raised by the adapters with ``raise ... from exc`` so the
original library exception stays on ``__cause__`` for logging; the message
itself is safe to show to API callers.
"""

from __future__ import annotations


class RagError(Exception):
    """Base class for all ragserve request failures."""

    http_status: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


# ---------------------------------------------------------------------------
# Client errors
# ---------------------------------------------------------------------------


class EmptyContent(RagError):
    """Upload contained no extractable text."""

    http_status = 400
    default_message = "No text content found in file"


class EmptyQuery(RagError):
    """Query text was blank."""

    http_status = 400
    default_message = "No query provided"


class NotFound(RagError):
    """No document registered under the requested id."""

    http_status = 404
    default_message = "Document not found"


# ---------------------------------------------------------------------------
# Collaborator failures
# ---------------------------------------------------------------------------


class CollaboratorError(RagError):
    """An external service (model, index, registry) failed."""

    http_status = 500


class EmbeddingUnavailable(CollaboratorError):
    default_message = "Embedding service unavailable"


class IndexWriteFailed(CollaboratorError):
    default_message = "Failed to write to the vector index"


class IndexQueryFailed(CollaboratorError):
    default_message = "Failed to query the vector index"


class StorageUnavailable(CollaboratorError):
    default_message = "Document registry unavailable"


class GenerationUnavailable(CollaboratorError):
    default_message = "Generation service unavailable"
