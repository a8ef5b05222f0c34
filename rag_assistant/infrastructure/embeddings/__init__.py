"""Embedding provider implementations."""
from .batching import BatchingEmbedder
from .offline_embedder import OfflineEmbedder
from .openai_embedder import OpenAIEmbedder

__all__ = ["BatchingEmbedder", "OfflineEmbedder", "OpenAIEmbedder"]
