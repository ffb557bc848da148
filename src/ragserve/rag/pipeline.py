"""Query pipeline: retrieve → assemble → generate.

Each query is independent (no conversation history). When retrieval comes
back empty the generator is skipped and a fixed answer is returned.
"""

from __future__ import annotations

import logging

from ragserve.db.models import QueryResult
from ragserve.errors import EmptyQuery
from ragserve.interfaces import EmbeddingClient, GenerationClient, VectorIndex
from ragserve.rag.assembler import build_system_prompt
from ragserve.rag.retriever import retrieve

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3
DEFAULT_MAX_TOKENS = 500

NO_CONTEXT_RESPONSE = (
    "I don't have any relevant information in the knowledge base to answer "
    "this question. Please upload some documents first."
)


class QueryPipeline:
    """Answer natural-language questions from the indexed documents.

    Args:
        embedder: Embedding capability (same model as ingestion).
        index: Vector index capability.
        generator: Generation capability.
        max_tokens: Output token limit passed to the generator.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        index: VectorIndex,
        generator: GenerationClient,
        *,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self._generator = generator
        self.max_tokens = max_tokens

    def query(self, text: str | None, top_k: int = DEFAULT_TOP_K) -> QueryResult:
        """Retrieve the *top_k* closest chunks and answer *text* from them.

        Raises:
            EmptyQuery: If *text* is blank.
            ValueError: If *top_k* is less than 1.
            EmbeddingUnavailable, IndexQueryFailed, GenerationUnavailable:
                Propagated from the collaborators.
        """
        if not text or not text.strip():
            raise EmptyQuery()
        if top_k < 1:
            raise ValueError("top_k must be >= 1")

        retrieved = retrieve(text, self._embedder, self._index, top_k)

        if not retrieved:
            logger.info("No matches for query; skipping generation")
            return QueryResult(query=text, retrieved=[], response=NO_CONTEXT_RESPONSE)

        system_prompt = build_system_prompt(retrieved)
        response = self._generator.generate(system_prompt, text, self.max_tokens)

        logger.info("Answered query from %d chunks", len(retrieved))
        return QueryResult(query=text, retrieved=retrieved, response=response)
