import logging

from .batching import BatchingEmbedder

logger = logging.getLogger(__name__)


class OfflineEmbedder(BatchingEmbedder):
    """Deterministic embeddings computed from character codes.

    Character ``i`` adds ``code / 255`` (mod 1) to bucket ``i % size``.
    Used when the service is built in offline mode; never as a fallback.
    """

    def __init__(self, size: int = 32, batch_size: int = 10):
        super().__init__(batch_size=batch_size, batch_delay=0.0)
        self._size = size
        logger.info("Using offline embeddings")

    @property
    def dimensions(self) -> int:
        return self._size

    def embed_sync(self, text: str) -> list[float]:
        vector = [0.0] * self._size
        for index, char in enumerate(text or ""):
            bucket = index % self._size
            vector[bucket] = (vector[bucket] + ord(char) / 255) % 1
        return vector

    async def embed(self, text: str) -> list[float]:
        return self.embed_sync(text)
