import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..models.document import RetrievalCandidate

logger = logging.getLogger(__name__)


class ScoringStrategy(ABC):
    """Base class for scoring strategies."""

    @abstractmethod
    def apply(self, query: str, results: list[RetrievalCandidate]) -> list[RetrievalCandidate]:
        """Apply strategy to results."""
        ...


class RecencyBoostStrategy(ScoringStrategy):
    """Boost documents updated within a recent window."""

    def __init__(self, days: int = 30, boost: float = 0.05, now: Optional[datetime] = None):
        """Initialize strategy.

        Args:
            days: Window length in days.
            boost: Score added to recent documents.
            now: Fixed reference time (defaults to the current time per call).
        """
        self._window = timedelta(days=days)
        self._boost = boost
        self._now = now

    def apply(self, query: str, results: list[RetrievalCandidate]) -> list[RetrievalCandidate]:
        """Add the boost to candidates whose last update is inside the window."""
        now = self._now or datetime.now(timezone.utc)
        for result in results:
            last_update = result.payload.last_update
            if last_update is None:
                continue
            if last_update.tzinfo is None:
                last_update = last_update.replace(tzinfo=timezone.utc)
            if now - last_update < self._window:
                result.final_score += self._boost
        return results


class CategoryKeywordBoostStrategy(ScoringStrategy):
    """Boost documents whose category matches keywords in the query."""

    DEFAULT_CATEGORY_KEYWORDS = {
        "produtos": ["produto", "cadastro", "item", "sku"],
        "precos": ["preço", "precificação", "margem", "lucro", "custo"],
        "marketplaces": ["marketplace", "mercado livre", "shopee", "magalu"],
        "regras": ["regra", "frete", "desconto"],
        "contas": ["conta", "conectar", "integração", "token", "autorização"],
        "sincronizacao": ["sincroniz", "estoque", "importar", "exportar"],
        "webhooks": ["webhook", "notificação", "callback"],
        "depositos": ["depósito", "deposito", "armazém"],
    }

    def __init__(
        self,
        category_keywords: dict[str, list[str]] | None = None,
        boost: float = 0.1,
    ):
        """Initialize strategy.

        Args:
            category_keywords: Custom category -> keywords mapping.
            boost: Score added once per matching candidate.
        """
        self._category_keywords = category_keywords or self.DEFAULT_CATEGORY_KEYWORDS
        self._boost = boost

    def apply(self, query: str, results: list[RetrievalCandidate]) -> list[RetrievalCandidate]:
        """Boost candidates of a category whose keywords appear in the query."""
        query_lower = query.lower()
        boosted = 0
        for result in results:
            keywords = self._category_keywords.get(result.payload.category, ())
            if any(keyword in query_lower for keyword in keywords):
                result.final_score += self._boost
                boosted += 1

        if boosted:
            logger.info(f"Category boost: {boosted} docs boosted")
        return results


class Reranker:
    """Orders fused candidates by their combined score plus strategy boosts."""

    def __init__(self, strategies: list[ScoringStrategy] | None = None):
        self._strategies = (
            strategies
            if strategies is not None
            else [RecencyBoostStrategy(), CategoryKeywordBoostStrategy()]
        )

    def rerank(
        self, query: str, candidates: list[RetrievalCandidate], top_k: int
    ) -> list[RetrievalCandidate]:
        """Rerank candidates.

        Args:
            query: User query.
            candidates: Fused candidates.
            top_k: Number of results to return.

        Returns:
            Top candidates by final score.
        """
        for candidate in candidates:
            candidate.final_score = candidate.combined_score
            candidate.reranked = True

        for strategy in self._strategies:
            candidates = strategy.apply(query, candidates)

        result = sorted(candidates, key=lambda c: c.final_score, reverse=True)[:top_k]
        logger.info(f"Reranked to top {len(result)} documents")
        return result
