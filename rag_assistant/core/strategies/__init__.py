"""Scoring strategies and reranking."""
from .scoring import (
    ScoringStrategy,
    RecencyBoostStrategy,
    CategoryKeywordBoostStrategy,
    Reranker,
)

__all__ = [
    "ScoringStrategy",
    "RecencyBoostStrategy",
    "CategoryKeywordBoostStrategy",
    "Reranker",
]
