"""
Unit tests for the assistant pipeline and its wiring.

Tests cover:
- Full answer over an offline corpus (sources, confidence, metadata)
- Degraded paths: retrieval, classification and verification failures
- Generation failure propagates
- Streaming through the chat service
- Container wiring and settings validation
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from rag_assistant.config.settings import Settings
from rag_assistant.container import configure_container
from rag_assistant.core.errors import GenerationError, VectorStoreError
from rag_assistant.core.services.chat_service import ChatService
from rag_assistant.core.services.context_packer import ContextPacker
from rag_assistant.core.services.generation_service import GenerationService
from rag_assistant.core.services.ingest_service import DocumentProcessor
from rag_assistant.core.services.keyword_index import KeywordIndex
from rag_assistant.core.services.rag_service import RAGService
from rag_assistant.core.services.search_service import HybridRetriever
from rag_assistant.core.services.update_service import IndexUpdater
from rag_assistant.core.services.vector_index import VectorIndex
from rag_assistant.core.verification import ContextOverlapVerifier, LLMVerifier
from rag_assistant.infrastructure.embeddings import OfflineEmbedder
from rag_assistant.infrastructure.vector_stores.memory_store import InMemoryVectorStore

from conftest import FakeLLM


async def _rag(corpus: Path) -> RAGService:
    vector_index = VectorIndex(OfflineEmbedder(), InMemoryVectorStore())
    keyword_index = KeywordIndex()
    rag = RAGService(
        retriever=HybridRetriever(vector_index, keyword_index, vector_threshold=None),
        packer=ContextPacker(),
        updater=IndexUpdater(DocumentProcessor(corpus), vector_index, keyword_index, watch=False),
    )
    await rag.initialize()
    return rag


def _failing_rag() -> MagicMock:
    rag = MagicMock()
    rag.retrieve_context = AsyncMock(side_effect=VectorStoreError("qdrant unavailable"))
    return rag


class TestAnswer:
    """Tests for ChatService.answer"""

    @pytest.mark.asyncio
    async def test_full_pipeline(self, corpus):
        llm = FakeLLM(reply="Abra a página de integrações.")
        chat = ChatService(await _rag(corpus), GenerationService(llm))

        reply = await chat.answer("connect account")

        assert reply.answer == "Abra a página de integrações."
        assert "Connecting external accounts" in reply.sources
        assert reply.confidence == pytest.approx(0.9)
        assert reply.level == "high"
        assert reply.disclaimer is None
        assert reply.actions == []
        assert reply.metadata["context"]["document_count"] > 0
        assert reply.metadata["verification"]["is_verified"]
        assert "Connecting external accounts" in llm.messages[0][0]["content"]

    @pytest.mark.asyncio
    async def test_retrieval_failure_answers_without_context(self):
        llm = FakeLLM()
        chat = ChatService(_failing_rag(), GenerationService(llm), verifier=ContextOverlapVerifier())

        reply = await chat.answer("como conectar?")

        assert reply.sources == []
        assert reply.metadata["context"] is None
        assert reply.confidence == pytest.approx(0.5)
        assert reply.level == "low"
        assert reply.disclaimer is not None
        assert reply.actions == []
        assert "--- DOCUMENTO" not in llm.messages[0][0]["content"]

    @pytest.mark.asyncio
    async def test_classification_failure_uses_general(self, corpus):
        llm = FakeLLM(json_error=GenerationError("not json"))
        chat = ChatService(await _rag(corpus), GenerationService(llm))

        reply = await chat.answer("connect account")

        assert reply.category == "general"
        assert reply.confidence == pytest.approx(0.9)

    @pytest.mark.asyncio
    async def test_verification_failure_is_unverified(self, corpus):
        verifier = LLMVerifier(FakeLLM(json_error=GenerationError("timeout")))
        chat = ChatService(await _rag(corpus), GenerationService(FakeLLM()), verifier=verifier)

        reply = await chat.answer("connect account")

        assert reply.metadata["verification"] == {
            "is_verified": False,
            "has_hallucination": False,
            "confidence": 0.5,
        }
        assert reply.confidence == pytest.approx(0.7)
        assert reply.level == "medium"
        assert reply.disclaimer is None

    @pytest.mark.asyncio
    async def test_generation_failure_propagates(self):
        llm = FakeLLM()
        llm.complete = AsyncMock(side_effect=GenerationError("model down"))
        chat = ChatService(_failing_rag(), GenerationService(llm))

        with pytest.raises(GenerationError):
            await chat.answer("oi")


class TestStream:
    """Tests for ChatService.stream"""

    @pytest.mark.asyncio
    async def test_relays_generation_events(self, corpus):
        llm = FakeLLM(chunks=("Abra ", "a página."))
        chat = ChatService(await _rag(corpus), GenerationService(llm))

        events = [e async for e in chat.stream("connect account")]

        assert [e.type for e in events] == ["chunk", "chunk", "done"]
        assert events[-1].metadata.full_content == "Abra a página."
        assert llm.stream_closed


class TestContainer:
    """Tests for dependency wiring"""

    @pytest.mark.asyncio
    async def test_offline_container_answers(self, corpus):
        settings = Settings(offline_mode=True, docs_path=str(corpus), docs_watch=False)
        container = configure_container(settings)

        rag = container.resolve(RAGService)
        assert await rag.initialize() > 0

        context = await rag.retrieve_context("connect account")
        assert "Connecting external accounts" in context.sources
        assert isinstance(container.resolve(ChatService), ChatService)
        assert container.resolve(ChatService) is container.resolve(ChatService)

    def test_weights_must_not_exceed_one(self):
        with pytest.raises(ValueError):
            Settings(rag_vector_weight=0.8, rag_keyword_weight=0.3)
