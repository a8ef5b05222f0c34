"""Typed errors raised by the RAG core."""


class RAGError(Exception):
    """Base class for all RAG core errors."""


class IngestionError(RAGError):
    """A corpus file could not be read or parsed."""


class EmbeddingError(RAGError):
    """The embedding provider failed to produce a vector."""


class VectorStoreError(RAGError):
    """The vector store rejected a write or a query."""


class GenerationError(RAGError):
    """The generative model call failed or returned unusable output."""
