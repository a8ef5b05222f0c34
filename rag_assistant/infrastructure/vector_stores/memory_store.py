import logging
from typing import Any, Optional

import numpy as np

from rag_assistant.core.models.document import VectorHit, VectorPoint

logger = logging.getLogger(__name__)


def _matches(payload: dict[str, Any], query_filter: Optional[dict[str, Any]]) -> bool:
    """Match a flat ``{key: value}`` filter against a payload."""
    if not query_filter:
        return True
    return all(payload.get(key) == value for key, value in query_filter.items())


class InMemoryVectorStore:
    """Process-local vector store with cosine similarity (offline mode)."""

    def __init__(self, collection_name: str = "product_docs"):
        self._collection_name = collection_name
        self._points: dict[str, VectorPoint] = {}

    def ensure_collection(self) -> None:
        logger.info(f"Using in-memory collection '{self._collection_name}'")

    def upsert(self, points: list[VectorPoint]) -> None:
        for point in points:
            self._points[point.id] = point

    def search(
        self,
        vector: list[float],
        limit: int = 10,
        score_threshold: Optional[float] = None,
        query_filter: Optional[dict[str, Any]] = None,
    ) -> list[VectorHit]:
        candidates = [p for p in self._points.values() if _matches(p.payload, query_filter)]
        if not candidates:
            return []

        query = np.asarray(vector, dtype=float)
        matrix = np.asarray([p.vector for p in candidates], dtype=float)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

        order = np.argsort(-scores, kind="stable")
        hits = []
        for idx in order:
            score = float(scores[idx])
            if score_threshold is not None and score < score_threshold:
                continue
            point = candidates[idx]
            hits.append(VectorHit(id=point.id, score=score, payload=point.payload))
            if len(hits) >= limit:
                break
        return hits

    def delete_file(self, file_path: str, from_chunk_index: int = 0) -> None:
        self._points = {
            pid: p
            for pid, p in self._points.items()
            if not (
                p.payload.get("file_path") == file_path
                and p.payload.get("chunk_index", 0) >= from_chunk_index
            )
        }

    def count(self) -> int:
        return len(self._points)
