import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)


class BatchingEmbedder(ABC):
    """Base embedder: concurrent requests per batch, paced between batches."""

    def __init__(self, batch_size: int = 10, batch_delay: float = 1.0):
        """Initialize embedder.

        Args:
            batch_size: Texts embedded concurrently per batch.
            batch_delay: Pause in seconds between batches.
        """
        self._batch_size = batch_size
        self._batch_delay = batch_delay

    @property
    @abstractmethod
    def dimensions(self) -> int:
        ...

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        ...

    async def embed_batch(
        self, texts: list[str], batch_size: Optional[int] = None
    ) -> list[list[float]]:
        batch_size = batch_size or self._batch_size
        total_batches = (len(texts) + batch_size - 1) // batch_size
        embeddings: list[list[float]] = []

        for start in range(0, len(texts), batch_size):
            batch = texts[start : start + batch_size]
            embeddings.extend(
                await asyncio.gather(*(self.embed(text) for text in batch))
            )

            batch_number = start // batch_size + 1
            if self._batch_delay > 0:
                logger.info(f"Generated embeddings for batch {batch_number}/{total_batches}")
                if batch_number < total_batches:
                    await asyncio.sleep(self._batch_delay)

        return embeddings
