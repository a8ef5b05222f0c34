import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _singletons: dict[type, Any] = field(default_factory=dict)
    _singleton_flags: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Args:
            interface: Interface type.
            factory: Factory function.
            singleton: Whether to cache instance.
        """
        self._factories[interface] = factory
        if singleton:
            self._singleton_flags.add(interface)

    def resolve(self, interface: type[T]) -> T:
        if interface in self._singletons:
            return self._singletons[interface]

        if interface not in self._factories:
            raise KeyError(f"No factory registered for {interface}")

        instance = self._factories[interface]()

        if interface in self._singleton_flags:
            self._singletons[interface] = instance

        return instance

    def reset(self) -> None:
        """Reset singletons (for testing)."""
        self._singletons.clear()


def _verifier_for(settings: Settings, container: Container):
    from .core.protocols.llm import LLMProtocol
    from .core.verification import ContextOverlapVerifier, LLMVerifier, PassThroughVerifier

    if settings.verifier_mode == "llm":
        return LLMVerifier(container.resolve(LLMProtocol))
    if settings.verifier_mode == "passthrough":
        return PassThroughVerifier()
    return ContextOverlapVerifier()


def configure_container(settings: Settings) -> Container:
    """Build a container with all dependencies.

    Offline mode swaps in deterministic embeddings and an in-memory vector
    store; the choice is made here, once.

    Args:
        settings: Application settings.

    Returns:
        Configured container.
    """
    from .core.protocols.embedder import EmbedderProtocol
    from .core.protocols.llm import LLMProtocol
    from .core.protocols.vector_store import VectorStoreProtocol
    from .core.services.chat_service import ChatService
    from .core.services.context_packer import ContextPacker
    from .core.services.conversation_context import ConversationContextManager
    from .core.services.generation_service import GenerationService
    from .core.services.ingest_service import DocumentProcessor
    from .core.services.keyword_index import KeywordIndex
    from .core.services.rag_service import RAGService
    from .core.services.search_service import HybridRetriever
    from .core.services.update_service import IndexUpdater
    from .core.services.vector_index import VectorIndex
    from .core.strategies.scoring import (
        CategoryKeywordBoostStrategy,
        RecencyBoostStrategy,
        Reranker,
    )
    from .core.verification import ConfidenceScorer, FallbackPolicy
    from .infrastructure.document_loaders import TextLoader
    from .infrastructure.embeddings import OfflineEmbedder, OpenAIEmbedder
    from .infrastructure.llm.openai_client import OpenAIChatClient
    from .infrastructure.vector_stores.memory_store import InMemoryVectorStore
    from .infrastructure.vector_stores.qdrant_store import QdrantVectorStore

    container = Container()

    if settings.offline_mode:
        container.register(
            EmbedderProtocol,
            lambda: OfflineEmbedder(
                size=settings.offline_embedding_size,
                batch_size=settings.embedding_batch_size,
            ),
            singleton=True,
        )
        container.register(
            VectorStoreProtocol,
            lambda: InMemoryVectorStore(collection_name=settings.qdrant_collection),
            singleton=True,
        )
    else:
        container.register(
            EmbedderProtocol,
            lambda: OpenAIEmbedder(
                base_url=settings.llm_base_url,
                api_key=settings.llm_api_key,
                model=settings.embedding_model,
                dimensions=settings.vector_size,
                batch_size=settings.embedding_batch_size,
                batch_delay=settings.embedding_batch_delay,
                timeout=settings.llm_timeout,
            ),
            singleton=True,
        )
        container.register(
            VectorStoreProtocol,
            lambda: QdrantVectorStore(
                url=settings.qdrant_url,
                collection_name=settings.qdrant_collection,
                vector_size=settings.vector_size,
                api_key=settings.qdrant_api_key,
                timeout=settings.vector_store_timeout,
            ),
            singleton=True,
        )

    container.register(
        LLMProtocol,
        lambda: OpenAIChatClient(
            base_url=settings.llm_base_url,
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            timeout=settings.llm_timeout,
        ),
        singleton=True,
    )

    container.register(
        DocumentProcessor,
        lambda: DocumentProcessor(
            docs_path=settings.docs_path,
            max_words=settings.chunk_max_words,
            loader=TextLoader(set(settings.docs_extensions)),
        ),
        singleton=True,
    )

    container.register(
        VectorIndex,
        lambda: VectorIndex(
            embedder=container.resolve(EmbedderProtocol),
            vector_store=container.resolve(VectorStoreProtocol),
            upsert_batch_size=settings.vector_upsert_batch_size,
        ),
        singleton=True,
    )

    container.register(KeywordIndex, KeywordIndex, singleton=True)

    container.register(
        HybridRetriever,
        lambda: HybridRetriever(
            vector_index=container.resolve(VectorIndex),
            keyword_index=container.resolve(KeywordIndex),
            reranker=Reranker(
                [
                    RecencyBoostStrategy(days=settings.rag_recency_days),
                    CategoryKeywordBoostStrategy(),
                ]
            ),
            top_k=settings.rag_top_k,
            vector_weight=settings.rag_vector_weight,
            keyword_weight=settings.rag_keyword_weight,
            vector_threshold=settings.rag_vector_threshold,
        ),
        singleton=True,
    )

    container.register(
        IndexUpdater,
        lambda: IndexUpdater(
            processor=container.resolve(DocumentProcessor),
            vector_index=container.resolve(VectorIndex),
            keyword_index=container.resolve(KeywordIndex),
            watch=settings.docs_watch,
        ),
        singleton=True,
    )

    container.register(
        RAGService,
        lambda: RAGService(
            retriever=container.resolve(HybridRetriever),
            packer=ContextPacker(max_tokens=settings.context_max_tokens),
            updater=container.resolve(IndexUpdater),
            top_k=settings.rag_top_k,
        ),
        singleton=True,
    )

    container.register(
        GenerationService,
        lambda: GenerationService(
            llm=container.resolve(LLMProtocol),
            context_manager=ConversationContextManager(
                max_tokens=settings.history_max_tokens,
                reserve_tokens=settings.history_reserve_tokens,
            ),
            acknowledge_system_prompt=settings.llm_acknowledge_system_prompt,
            product_name=settings.product_name,
        ),
        singleton=True,
    )

    container.register(
        ChatService,
        lambda: ChatService(
            rag=container.resolve(RAGService),
            generator=container.resolve(GenerationService),
            verifier=_verifier_for(settings, container),
            scorer=ConfidenceScorer(),
            fallback=FallbackPolicy(),
            top_k=settings.rag_top_k,
        ),
        singleton=True,
    )

    logger.info(f"Container configured (offline_mode={settings.offline_mode})")
    return container
