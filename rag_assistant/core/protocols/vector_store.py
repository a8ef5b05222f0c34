"""Vector store protocol for dependency injection."""
from typing import Any, Optional, Protocol, runtime_checkable

from ..models.document import VectorHit, VectorPoint


@runtime_checkable
class VectorStoreProtocol(Protocol):
    """Protocol for vector storage."""

    def ensure_collection(self) -> None:
        """Create the collection if it does not exist."""
        ...

    def upsert(self, points: list[VectorPoint]) -> None:
        """Insert or replace points.

        Args:
            points: Points with id, vector and payload.

        Raises:
            VectorStoreError: If the write fails.
        """
        ...

    def search(
        self,
        vector: list[float],
        limit: int = 10,
        score_threshold: Optional[float] = None,
        query_filter: Optional[dict[str, Any]] = None,
    ) -> list[VectorHit]:
        """Search by vector.

        Args:
            vector: Query vector.
            limit: Number of results to return.
            score_threshold: Minimum similarity.
            query_filter: Payload filter (store-specific).

        Returns:
            Hits ranked by similarity.
        """
        ...

    def delete_file(self, file_path: str, from_chunk_index: int = 0) -> None:
        """Delete points of a file whose chunk index is >= from_chunk_index."""
        ...

    def count(self) -> int:
        """Get point count."""
        ...
