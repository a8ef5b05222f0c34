"""
Pytest configuration for the rag_assistant test suite.

Configures:
- pytest-asyncio for async test support
- shared chunk factory, sample corpus and a scripted LLM double
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Optional

import pytest

from rag_assistant.core.models.document import DocumentChunk, chunk_id_for

pytest_plugins = ["pytest_asyncio"]


def make_chunk(
    file_path: str = "guia.md",
    chunk_index: int = 0,
    content: str = "conteúdo",
    title: str = "Guia",
    category: str = "geral",
    tags: tuple[str, ...] = (),
    total_chunks: int = 1,
    last_update: Optional[datetime] = None,
) -> DocumentChunk:
    return DocumentChunk(
        id=chunk_id_for(file_path, chunk_index),
        file_path=file_path,
        title=title,
        category=category,
        tags=frozenset(tags),
        difficulty="intermediario",
        content=content,
        full_content=content,
        chunk_index=chunk_index,
        total_chunks=total_chunks,
        last_update=last_update,
    )


class FakeLLM:
    """Scripted LLMProtocol implementation."""

    def __init__(
        self,
        reply: str = "Resposta.",
        chunks: tuple[str, ...] = ("Olá", ", ", "mundo"),
        json_reply: Optional[dict[str, Any]] = None,
        fail_at: Optional[int] = None,
        json_error: Optional[Exception] = None,
    ):
        self.reply = reply
        self.chunks = chunks
        self.json_reply = json_reply if json_reply is not None else {
            "isDomainRelated": True,
            "confidence": 0.9,
            "category": "estoqueuni",
            "reasoning": "pergunta sobre o produto",
        }
        self.fail_at = fail_at
        self.json_error = json_error
        self.messages: list[list[dict[str, str]]] = []
        self.prompts: list[str] = []
        self.stream_closed = False
        self.chunks_sent = 0

    async def complete(self, messages: list[dict[str, str]]) -> str:
        self.messages.append(messages)
        return self.reply

    async def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        self.messages.append(messages)
        try:
            for index, chunk in enumerate(self.chunks):
                if self.fail_at is not None and index == self.fail_at:
                    raise RuntimeError("model connection lost")
                self.chunks_sent += 1
                yield chunk
        finally:
            self.stream_closed = True

    async def complete_json(self, prompt: str) -> dict[str, Any]:
        self.prompts.append(prompt)
        if self.json_error is not None:
            raise self.json_error
        return self.json_reply


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def corpus(tmp_path: Path) -> Path:
    """Small markdown corpus with front matter."""
    docs = tmp_path / "docs"
    (docs / "contas").mkdir(parents=True)
    (docs / "precos").mkdir()

    (docs / "contas" / "conectar.md").write_text(
        "---\n"
        "title: Connecting external accounts\n"
        "category: contas\n"
        "tags: [accounts, integration]\n"
        "---\n"
        "# Overview\n\n"
        "To connect your account, open the integrations page and authorize access.\n\n"
        "## Troubleshooting\n\n"
        "If the token expires, reconnect the account from the same page.\n",
        encoding="utf-8",
    )
    (docs / "precos" / "margem.md").write_text(
        "---\n"
        "titulo: Precificação e margem\n"
        "categoria: precos\n"
        "tags: [preço, margem]\n"
        "dificuldade: avancado\n"
        "ultima_atualizacao: 2024-01-15\n"
        "---\n"
        "# Margem\n\n"
        "A margem de lucro é calculada sobre o custo do produto.\n",
        encoding="utf-8",
    )
    (docs / "notas.txt").write_text("ignored file", encoding="utf-8")
    return docs


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)
