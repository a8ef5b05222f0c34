"""Vector index service - embeds chunks and queries the vector store."""

import asyncio
import logging
from typing import Any, Optional

from ..models.document import DocumentChunk, VectorHit, VectorPoint
from ..protocols.embedder import EmbedderProtocol
from ..protocols.vector_store import VectorStoreProtocol

logger = logging.getLogger(__name__)


class VectorIndex:
    """Semantic index over document chunks."""

    def __init__(
        self,
        embedder: EmbedderProtocol,
        vector_store: VectorStoreProtocol,
        upsert_batch_size: int = 100,
    ):
        """Initialize vector index.

        Args:
            embedder: Embedding service.
            vector_store: Vector store.
            upsert_batch_size: Points written per upsert request.
        """
        self._embedder = embedder
        self._vector_store = vector_store
        self._upsert_batch_size = upsert_batch_size

    async def ensure_collection(self) -> None:
        await asyncio.to_thread(self._vector_store.ensure_collection)

    async def index_documents(self, chunks: list[DocumentChunk]) -> int:
        """Embed and upsert chunks.

        Args:
            chunks: Chunks to index.

        Returns:
            Number of points written.

        Raises:
            EmbeddingError: If the embedding provider fails.
            VectorStoreError: If the store rejects a batch.
        """
        if not chunks:
            return 0

        logger.info(f"Generating embeddings for {len(chunks)} chunks...")
        vectors = await self._embedder.embed_batch([c.content for c in chunks])

        points = [
            VectorPoint(id=chunk.id, vector=vector, payload=chunk.to_payload())
            for chunk, vector in zip(chunks, vectors)
        ]

        written = 0
        for start in range(0, len(points), self._upsert_batch_size):
            batch = points[start : start + self._upsert_batch_size]
            await asyncio.to_thread(self._vector_store.upsert, batch)
            written += len(batch)
            logger.info(f"Indexed batch {start // self._upsert_batch_size + 1} ({len(batch)} points)")

        logger.info(f"Successfully indexed {written} documents")
        return written

    async def search(
        self,
        query: str,
        limit: int = 10,
        score_threshold: Optional[float] = None,
        query_filter: Optional[dict[str, Any]] = None,
    ) -> list[VectorHit]:
        """Embed the query and search the store.

        Returns:
            Hits ranked by similarity.
        """
        vector = await self._embedder.embed(query)
        return await asyncio.to_thread(
            self._vector_store.search, vector, limit, score_threshold, query_filter
        )

    async def remove_stale(self, file_path: str, keep: int = 0) -> None:
        """Delete a file's points with chunk index >= keep."""
        await asyncio.to_thread(self._vector_store.delete_file, file_path, keep)
        logger.info(f"Pruned vector points of {file_path} from chunk {keep}")

    async def count(self) -> int:
        return await asyncio.to_thread(self._vector_store.count)
