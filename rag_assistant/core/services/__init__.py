"""Core business services."""
from .ingest_service import DocumentProcessor
from .vector_index import VectorIndex
from .keyword_index import KeywordIndex
from .search_service import HybridRetriever, combine_results
from .context_packer import ContextPacker
from .conversation_context import ConversationContextManager
from .generation_service import GenerationService
from .update_service import IndexUpdater
from .rag_service import RAGService
from .chat_service import ChatService

__all__ = [
    "DocumentProcessor",
    "VectorIndex",
    "KeywordIndex",
    "HybridRetriever",
    "combine_results",
    "ContextPacker",
    "ConversationContextManager",
    "GenerationService",
    "IndexUpdater",
    "RAGService",
    "ChatService",
]
