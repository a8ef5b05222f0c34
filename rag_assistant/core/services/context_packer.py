"""Context packer - fits retrieved chunks into a token budget."""

import logging
from typing import Iterable, Union

from ..models.document import ContextBundle, DocumentChunk, PackedDocument, RetrievalCandidate
from ..tokens import estimate_tokens, truncate_to_tokens

logger = logging.getLogger(__name__)

# Remaining room (in tokens) needed before a truncated document is worth adding
MIN_TRUNCATION_ROOM = 100


class ContextPacker:
    """Greedy, order-preserving packing of chunks into max_tokens."""

    def __init__(self, max_tokens: int = 4000):
        self._max_tokens = max_tokens

    @property
    def max_tokens(self) -> int:
        return self._max_tokens

    def pack(
        self,
        query: str,
        documents: Iterable[Union[RetrievalCandidate, DocumentChunk]],
    ) -> ContextBundle:
        """Pack documents in order until the budget is exhausted.

        The query's own tokens count against the budget; a query that fills
        it on its own yields no documents. The first document that does not fit is added truncated if more than 100 tokens remain;
        every document after it is dropped.

        Args:
            query: User query.
            documents: Ranked candidates or chunks.

        Returns:
            Packed documents and their token total.
        """
        total_tokens = estimate_tokens(query)
        if total_tokens >= self._max_tokens:
            logger.warning(
                f"Query alone uses ~{total_tokens} tokens (budget {self._max_tokens}), "
                "no documents packed"
            )
            return ContextBundle(documents=[], total_tokens=self._max_tokens)

        packed: list[PackedDocument] = []

        for doc in documents:
            chunk = doc.payload if isinstance(doc, RetrievalCandidate) else doc
            doc_tokens = estimate_tokens(chunk.content)

            if total_tokens + doc_tokens <= self._max_tokens:
                packed.append(PackedDocument(chunk=chunk, content=chunk.content))
                total_tokens += doc_tokens
                continue

            remaining = self._max_tokens - total_tokens
            if remaining > MIN_TRUNCATION_ROOM:
                content = truncate_to_tokens(chunk.content, remaining)
                packed.append(PackedDocument(chunk=chunk, content=content, truncated=True))
                total_tokens += estimate_tokens(content)
            break

        logger.info(f"Optimized context: {len(packed)} documents, ~{total_tokens} tokens")
        return ContextBundle(documents=packed, total_tokens=total_tokens)

    @staticmethod
    def format_context(bundle: ContextBundle) -> str:
        """Render packed documents as the prompt context block."""
        parts = []
        for index, doc in enumerate(bundle.documents, 1):
            chunk = doc.chunk
            parts.append(
                f"--- DOCUMENTO {index}: {chunk.title} ---\n"
                f"Categoria: {chunk.category}\n"
                f"Tags: {', '.join(sorted(chunk.tags))}\n"
                f"\n"
                f"{doc.content}"
            )
        return "\n\n".join(parts)
