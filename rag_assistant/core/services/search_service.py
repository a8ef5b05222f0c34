"""Search service - hybrid vector + keyword retrieval."""

import asyncio
import logging
from typing import Optional

from ..models.document import DocumentChunk, KeywordHit, RetrievalCandidate, VectorHit
from ..strategies.scoring import Reranker
from .keyword_index import KeywordIndex
from .vector_index import VectorIndex

logger = logging.getLogger(__name__)


def combine_results(
    vector_hits: list[VectorHit],
    keyword_hits: list[KeywordHit],
    vector_weight: float = 0.7,
    keyword_weight: float = 0.3,
) -> list[RetrievalCandidate]:
    """Fuse vector and keyword hits into one ranked list.

    Keyword scores are divided by ``max(best keyword score, 1)`` before
    weighting, so a single weak keyword hit is not inflated to 1.0.

    Args:
        vector_hits: Hits from the vector index.
        keyword_hits: Hits from the keyword index.
        vector_weight: Weight of the vector similarity.
        keyword_weight: Weight of the normalised keyword score.

    Returns:
        Candidates sorted by combined score, best first.
    """
    candidates: dict[str, RetrievalCandidate] = {}

    for hit in vector_hits:
        candidates[hit.id] = RetrievalCandidate(
            id=hit.id,
            payload=DocumentChunk.from_payload(hit.payload),
            vector_score=hit.score,
            combined_score=hit.score * vector_weight,
        )

    max_keyword_score = max([h.score for h in keyword_hits] + [1.0])

    for hit in keyword_hits:
        normalized = hit.score / max_keyword_score
        existing = candidates.get(hit.id)
        if existing is not None:
            existing.combined_score += normalized * keyword_weight
            existing.keyword_score = normalized
        else:
            candidates[hit.id] = RetrievalCandidate(
                id=hit.id,
                payload=hit.chunk,
                keyword_score=normalized,
                combined_score=normalized * keyword_weight,
            )

    return sorted(candidates.values(), key=lambda c: c.combined_score, reverse=True)


class HybridRetriever:
    """Runs vector and keyword search concurrently, fuses and reranks."""

    def __init__(
        self,
        vector_index: VectorIndex,
        keyword_index: KeywordIndex,
        reranker: Optional[Reranker] = None,
        top_k: int = 5,
        vector_weight: float = 0.7,
        keyword_weight: float = 0.3,
        vector_threshold: Optional[float] = 0.7,
    ):
        """Initialize retriever.

        Args:
            vector_index: Semantic index.
            keyword_index: Lexical index.
            reranker: Reranker applied after fusion.
            top_k: Number of results to return.
            vector_weight: Fusion weight of vector similarity.
            keyword_weight: Fusion weight of keyword score.
            vector_threshold: Minimum vector similarity (None disables).
        """
        self._vector_index = vector_index
        self._keyword_index = keyword_index
        self._reranker = reranker or Reranker()
        self._top_k = top_k
        self._vector_weight = vector_weight
        self._keyword_weight = keyword_weight
        self._vector_threshold = vector_threshold

    async def retrieve(self, query: str, top_k: Optional[int] = None) -> list[RetrievalCandidate]:
        """Retrieve the most relevant chunks for a query.

        Args:
            query: Search query.
            top_k: Override number of results.

        Returns:
            Reranked candidates.

        Raises:
            EmbeddingError: If the query cannot be embedded.
            VectorStoreError: If the vector search fails.
        """
        top_k = self._top_k if top_k is None else top_k
        if top_k <= 0:
            return []
        fetch_k = top_k * 2

        try:
            vector_hits, keyword_hits = await asyncio.gather(
                self._vector_index.search(
                    query, limit=fetch_k, score_threshold=self._vector_threshold
                ),
                asyncio.to_thread(self._keyword_index.search, query, fetch_k),
            )
        except Exception as e:
            logger.error(f"Error in hybrid retrieval: {e}")
            raise

        combined = combine_results(
            vector_hits, keyword_hits, self._vector_weight, self._keyword_weight
        )
        reranked = self._reranker.rerank(query, combined, top_k)

        logger.info(f"Retrieved {len(reranked)} documents for query: '{query[:50]}'")
        return reranked
