"""Context assembler: label retrieved chunks and build the system prompt.

Chunks keep retrieval-rank order (highest similarity first):

    [Document 1: faq.txt]
    <chunk text>

    [Document 2: policies.md]
    <chunk text>
"""

from __future__ import annotations

from ragserve.db.models import RetrievedChunk

_SYSTEM_TEMPLATE = """\
You are a helpful assistant that answers questions based on the provided context.
Use the following context to answer the user's question.
Answer only from the context. If the context doesn't contain relevant information, say so.
Always cite which document the information came from.

Context:
{context}"""


def build_context(chunks: list[RetrievedChunk]) -> str:
    """Join *chunks* into one labelled context block."""
    return "\n\n".join(
        f"[Document {i}: {c.file_name}]\n{c.text}"
        for i, c in enumerate(chunks, start=1)
    )


def build_system_prompt(chunks: list[RetrievedChunk]) -> str:
    """Return the grounding instruction with the context block embedded."""
    return _SYSTEM_TEMPLATE.format(context=build_context(chunks))
