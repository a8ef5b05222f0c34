"""
Unit tests for the generation orchestrator and the chat client adapter.

Tests cover:
- Message assembly (acknowledgement turn, role mapping, context section)
- Batch generation metadata
- Streaming event protocol: chunks, one terminal event, errors, cancellation
- Closing the stream releases the model connection
- Classification as an Outcome
- JSON parsing of model answers
"""

import asyncio
import json
from contextlib import aclosing
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from rag_assistant.core.errors import GenerationError
from rag_assistant.core.models.chat import Classification, ConversationTurn, StreamEvent
from rag_assistant.core.models.document import RetrievedContext
from rag_assistant.core.prompts import ACKNOWLEDGEMENT
from rag_assistant.core.services.generation_service import CANCELLED, GenerationService
from rag_assistant.infrastructure.llm.openai_client import OpenAIChatClient, parse_json_response

from conftest import FakeLLM


async def _collect(events) -> list[StreamEvent]:
    return [event async for event in events]


class TestBuildMessages:
    """Tests for GenerationService.build_messages"""

    def test_acknowledgement_turn_and_role_mapping(self, fake_llm):
        history = [
            ConversationTurn(role="user", content="oi"),
            ConversationTurn(role="assistant", content="olá"),
        ]
        messages = GenerationService(fake_llm).build_messages("como conectar?", history)

        assert messages[0]["role"] == "user"
        assert messages[1] == {"role": "assistant", "content": ACKNOWLEDGEMENT}
        assert messages[2:] == [
            {"role": "user", "content": "oi"},
            {"role": "assistant", "content": "olá"},
            {"role": "user", "content": "como conectar?"},
        ]

    def test_system_role_without_acknowledgement(self, fake_llm):
        messages = GenerationService(fake_llm, acknowledge_system_prompt=False).build_messages(
            "oi", []
        )
        assert [m["role"] for m in messages] == ["system", "user"]

    def test_context_and_sources_in_prompt(self, fake_llm):
        context = RetrievedContext(
            context="--- DOCUMENTO 1: Contas ---", sources=["Contas", "Webhooks"],
            document_count=1, estimated_tokens=10,
        )
        system_prompt = GenerationService(fake_llm).build_messages("oi", [], context)[0]["content"]

        assert "--- DOCUMENTO 1: Contas ---" in system_prompt
        assert "Contas, Webhooks" in system_prompt


class TestBatchGeneration:
    """Tests for non-streaming generation"""

    @pytest.mark.asyncio
    async def test_result_metadata(self):
        llm = FakeLLM(reply="Abra a página de integrações.")
        result = await GenerationService(llm).generate_response("como conectar?")

        assert result.content == "Abra a página de integrações."
        assert result.metadata.tokens_used == 8
        assert result.metadata.processing_time_ms >= 0

    @pytest.mark.asyncio
    async def test_failure_propagates(self):
        llm = FakeLLM()
        llm.complete = AsyncMock(side_effect=GenerationError("model down"))
        with pytest.raises(GenerationError):
            await GenerationService(llm).generate_response("oi")


class TestStreaming:
    """Tests for the streaming event protocol"""

    @pytest.mark.asyncio
    async def test_chunks_then_done(self):
        llm = FakeLLM(chunks=("Olá", ", ", "mundo"))
        events = await _collect(await GenerationService(llm).generate_response("oi", streaming=True))

        assert [e.type for e in events] == ["chunk", "chunk", "chunk", "done"]
        assert events[-1].metadata.full_content == "Olá, mundo"
        assert events[-1].metadata.tokens_used == 3
        assert llm.stream_closed

    @pytest.mark.asyncio
    async def test_error_is_terminal(self):
        """A mid-stream failure yields one error event and nothing after"""
        llm = FakeLLM(chunks=("a", "b", "c"), fail_at=1)
        events = await _collect(await GenerationService(llm).generate_response("oi", streaming=True))

        assert [e.type for e in events] == ["chunk", "error"]
        assert "model connection lost" in events[-1].error
        assert llm.stream_closed

    @pytest.mark.asyncio
    async def test_cancel_event(self):
        """Setting the event stops the stream with a cancelled error"""
        llm = FakeLLM(chunks=("um", "dois", "três", "quatro"))
        cancel = asyncio.Event()
        stream = await GenerationService(llm).generate_response(
            "oi", streaming=True, cancel_event=cancel
        )

        events = []
        async for event in stream:
            events.append(event)
            if len(events) == 2:
                cancel.set()

        assert [e.type for e in events] == ["chunk", "chunk", "error"]
        assert events[-1].error == CANCELLED
        assert llm.stream_closed
        assert llm.chunks_sent == 3

    @pytest.mark.asyncio
    async def test_aclose_closes_model_stream(self):
        llm = FakeLLM(chunks=("um", "dois", "três"))
        stream = await GenerationService(llm).generate_response("oi", streaming=True)

        async with aclosing(stream) as events:
            async for event in events:
                assert event.type == "chunk"
                break

        assert llm.stream_closed

    def test_sse_framing(self):
        frame = StreamEvent.chunk("olá").to_sse()
        assert frame.startswith("data: ") and frame.endswith("\n\n")
        assert json.loads(frame[len("data: "):]) == {"type": "chunk", "content": "olá"}


class TestClassification:
    """Tests for classify_question"""

    @pytest.mark.asyncio
    async def test_success(self):
        llm = FakeLLM(json_reply={"isDomainRelated": True, "confidence": 0.8, "category": "technical"})
        outcome = await GenerationService(llm).classify_question("como configurar webhooks?")

        assert outcome.ok
        assert outcome.value.is_domain_related
        assert outcome.value.category == "technical"
        assert "como configurar webhooks?" in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_failure_is_a_value(self):
        """The caller chooses the neutral default explicitly"""
        llm = FakeLLM(json_error=GenerationError("not json"))
        outcome = await GenerationService(llm).classify_question("?")

        assert not outcome.ok
        assert isinstance(outcome.error, GenerationError)
        default = outcome.value_or(Classification.general())
        assert default.category == "general"
        assert default.confidence == 0.5
        assert not default.is_domain_related


class TestOpenAIChatClient:
    """Tests for the OpenAI-compatible chat adapter"""

    def test_parse_json_with_code_fence(self):
        assert parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}

    def test_parse_json_rejects_non_objects(self):
        with pytest.raises(GenerationError):
            parse_json_response("[1, 2]")
        with pytest.raises(GenerationError):
            parse_json_response("não é json")

    @pytest.mark.asyncio
    async def test_complete_json(self):
        client = MagicMock()
        message = SimpleNamespace(content='{"isDomainRelated": false}')
        client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)])
        )

        data = await OpenAIChatClient(client=client).complete_json("classifique")
        assert data == {"isDomainRelated": False}

    @pytest.mark.asyncio
    async def test_stream_closes_response(self):
        class FakeResponse:
            closed = False

            def __init__(self, tokens):
                self._tokens = iter(tokens)

            def __aiter__(self):
                return self

            async def __anext__(self):
                try:
                    token = next(self._tokens)
                except StopIteration:
                    raise StopAsyncIteration
                return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=token))])

            async def close(self):
                self.closed = True

        response = FakeResponse(["a", None, "b"])
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=response)

        tokens = [t async for t in OpenAIChatClient(client=client).stream([])]

        assert tokens == ["a", "b"]
        assert response.closed

    @pytest.mark.asyncio
    async def test_complete_wraps_errors(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=TimeoutError("slow"))
        with pytest.raises(GenerationError):
            await OpenAIChatClient(client=client).complete([])
