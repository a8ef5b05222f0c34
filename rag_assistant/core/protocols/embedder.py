"""Embedder protocol for dependency injection."""
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class EmbedderProtocol(Protocol):
    """Protocol for embedding service."""

    @property
    def dimensions(self) -> int:
        """Length of every vector produced."""
        ...

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Args:
            text: Text to embed.

        Returns:
            Embedding vector.

        Raises:
            EmbeddingError: If the provider fails.
        """
        ...

    async def embed_batch(
        self, texts: list[str], batch_size: Optional[int] = None
    ) -> list[list[float]]:
        """Embed texts in paced batches, preserving order.

        Args:
            texts: Texts to embed.
            batch_size: Override the configured batch size.

        Returns:
            One vector per text.
        """
        ...
