"""RAG service - retrieval facade and index lifecycle."""

import logging
from typing import Optional

from ..models.document import RetrievedContext
from .context_packer import ContextPacker
from .search_service import HybridRetriever
from .update_service import IndexUpdater

logger = logging.getLogger(__name__)


class RAGService:
    """Retrieves packed documentation context for a query."""

    def __init__(
        self,
        retriever: HybridRetriever,
        packer: ContextPacker,
        updater: IndexUpdater,
        top_k: int = 5,
    ):
        self._retriever = retriever
        self._packer = packer
        self._updater = updater
        self._top_k = top_k

    @property
    def updater(self) -> IndexUpdater:
        return self._updater

    async def initialize(self) -> int:
        """Bulk index the corpus and start watching for changes."""
        return await self._updater.initialize()

    async def shutdown(self) -> None:
        await self._updater.shutdown()

    async def retrieve_context(self, query: str, top_k: Optional[int] = None) -> RetrievedContext:
        """Retrieve, rerank and pack context for a query.

        Args:
            query: User question.
            top_k: Override number of documents retrieved.

        Returns:
            Formatted context, source titles and token estimate.

        Raises:
            EmbeddingError: If the query cannot be embedded.
            VectorStoreError: If the vector search fails.
        """
        try:
            candidates = await self._retriever.retrieve(
                query, self._top_k if top_k is None else top_k
            )
        except Exception as e:
            logger.error(f"Error retrieving context: {e}")
            raise

        bundle = self._packer.pack(query, candidates)
        return RetrievedContext(
            context=self._packer.format_context(bundle),
            sources=bundle.sources,
            document_count=len(bundle.documents),
            estimated_tokens=bundle.total_tokens,
        )
