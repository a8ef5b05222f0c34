import asyncio
import logging
import sys
import time

import httpx

from rag_assistant.config.settings import settings
from rag_assistant.container import Container, configure_container
from rag_assistant.core.models.chat import ConversationTurn
from rag_assistant.core.services.chat_service import ChatService
from rag_assistant.core.services.rag_service import RAGService
from rag_assistant.core.services.search_service import HybridRetriever
from rag_assistant.core.services.update_service import IndexUpdater

logging.basicConfig(level=settings.log_level, format="%(message)s")
logger = logging.getLogger(__name__)


def wait_for_vector_store(attempts: int = 30) -> bool:
    """Poll Qdrant until it answers.

    Returns:
        True if ready, False otherwise.
    """
    if settings.offline_mode:
        return True

    headers = {"api-key": settings.qdrant_api_key} if settings.qdrant_api_key else {}
    for attempt in range(attempts):
        try:
            resp = httpx.get(f"{settings.qdrant_url}/collections", headers=headers, timeout=5)
            if resp.status_code == 200:
                logger.info("Vector store is ready")
                return True
        except httpx.HTTPError:
            pass
        logger.info(f"Waiting for vector store... ({attempt + 1}/{attempts})")
        time.sleep(2)

    logger.error("Vector store not available")
    return False


def ensure_ollama_models(attempts: int = 30) -> bool:
    """Pull the chat and embedding models if the server lacks them.

    Returns:
        True if models ready, False otherwise.
    """
    if settings.offline_mode:
        return True

    base_url = settings.llm_base_url.replace("/v1", "")
    wanted = {settings.llm_model, settings.embedding_model}

    for attempt in range(attempts):
        try:
            resp = httpx.get(f"{base_url}/api/tags", timeout=5)
            resp.raise_for_status()
        except httpx.HTTPError:
            logger.info(f"Waiting for Ollama... ({attempt + 1}/{attempts})")
            time.sleep(2)
            continue

        available = [m["name"] for m in resp.json().get("models", [])]
        for model in wanted:
            if any(model in name for name in available):
                continue
            logger.info(f"Pulling model {model}...")
            pull_resp = httpx.post(f"{base_url}/api/pull", json={"name": model}, timeout=600)
            if pull_resp.status_code != 200:
                logger.error(f"Failed to pull model {model}: {pull_resp.text}")
                return False
        logger.info("Models are ready")
        return True

    logger.error("Ollama not available")
    return False


async def _prepare(container: Container) -> None:
    """Make the indexes queryable for a one-shot command."""
    updater = container.resolve(IndexUpdater)
    if settings.offline_mode:
        await updater.initial_index()
    else:
        await updater.load_keyword_index()


async def _ingest(container: Container) -> int:
    return await container.resolve(IndexUpdater).initial_index()


async def _search(container: Container, query: str) -> None:
    await _prepare(container)
    candidates = await container.resolve(HybridRetriever).retrieve(query)
    for rank, c in enumerate(candidates, 1):
        print(
            f"{rank}. {c.payload.title} [{c.payload.category}] "
            f"final={c.final_score:.3f} vector={c.vector_score:.3f} "
            f"keyword={c.keyword_score:.3f} ({c.id})"
        )


async def _ask(container: Container, question: str) -> None:
    await _prepare(container)
    reply = await container.resolve(ChatService).answer(question)
    print(reply.answer)
    if reply.disclaimer:
        print(f"\n{reply.disclaimer}")
    if reply.sources:
        print(f"\nFontes: {', '.join(reply.sources)}")
    print(f"Confiança: {reply.confidence:.2f} ({reply.level})")


async def _watch(container: Container) -> None:
    rag = container.resolve(RAGService)
    await rag.initialize()
    chat = container.resolve(ChatService)
    history: list[ConversationTurn] = []
    try:
        while True:
            question = await asyncio.to_thread(input, "> ")
            if not question.strip():
                continue
            parts = []
            async for event in chat.stream(question, history):
                if event.type == "chunk":
                    parts.append(event.content)
                    print(event.content, end="", flush=True)
                elif event.type == "error":
                    print(f"\n[erro] {event.error}")
            print()
            history.append(ConversationTurn(role="user", content=question))
            history.append(ConversationTurn(role="assistant", content="".join(parts)))
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        await rag.shutdown()


def cmd_ingest():
    """Ingest command - index documents only."""
    if not (wait_for_vector_store() and ensure_ollama_models()):
        sys.exit(1)
    container = configure_container(settings)
    count = asyncio.run(_ingest(container))
    logger.info(f"Indexed {count} chunks")


def cmd_search(query: str):
    """Search command - print reranked candidates."""
    if not wait_for_vector_store():
        sys.exit(1)
    asyncio.run(_search(configure_container(settings), query))


def cmd_ask(question: str):
    """Ask command - run the full assistant pipeline once."""
    if not (wait_for_vector_store() and ensure_ollama_models()):
        sys.exit(1)
    asyncio.run(_ask(configure_container(settings), question))


def cmd_watch():
    """Watch command - index, watch the corpus and chat interactively."""
    if not (wait_for_vector_store() and ensure_ollama_models()):
        sys.exit(1)
    asyncio.run(_watch(configure_container(settings)))


def main():
    """CLI entry point."""
    if len(sys.argv) < 2:
        print("Usage: python -m rag_assistant.presentation.cli <command> [text]")
        print("Commands: ingest, search <query>, ask <question>, watch")
        sys.exit(1)

    command = sys.argv[1]
    text = " ".join(sys.argv[2:])

    if command == "ingest":
        cmd_ingest()
    elif command in ("search", "ask") and not text:
        print(f"Usage: python -m rag_assistant.presentation.cli {command} <text>")
        sys.exit(1)
    elif command == "search":
        cmd_search(text)
    elif command == "ask":
        cmd_ask(text)
    elif command == "watch":
        cmd_watch()
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
