import logging

from openai import AsyncOpenAI

from rag_assistant.core.errors import EmbeddingError

from .batching import BatchingEmbedder

logger = logging.getLogger(__name__)


class OpenAIEmbedder(BatchingEmbedder):
    """Embeddings from an OpenAI-compatible API (Ollama by default).

    Provider failures are raised as EmbeddingError; there is no fallback
    to offline vectors.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434/v1",
        api_key: str = "ollama",
        model: str = "nomic-embed-text",
        dimensions: int = 768,
        batch_size: int = 10,
        batch_delay: float = 1.0,
        timeout: float = 60.0,
        client: AsyncOpenAI | None = None,
    ):
        super().__init__(batch_size=batch_size, batch_delay=batch_delay)
        self._client = client or AsyncOpenAI(
            base_url=base_url, api_key=api_key, timeout=timeout
        )
        self._model = model
        self._dimensions = dimensions
        logger.info(f"Embedding service initialized: {model}")

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str) -> list[float]:
        try:
            response = await self._client.embeddings.create(model=self._model, input=text)
        except Exception as e:
            logger.error(f"Error generating embedding: {e}")
            raise EmbeddingError(f"Failed to generate embedding: {e}") from e

        vector = list(response.data[0].embedding)
        if len(vector) != self._dimensions:
            logger.warning(
                f"Unexpected embedding dimensions: {len(vector)} (expected {self._dimensions})"
            )
        return vector
