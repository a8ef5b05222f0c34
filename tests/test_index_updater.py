"""
Unit tests for bulk and incremental indexing.

Tests cover:
- Initial indexing into both indexes
- Re-indexing a file that shrank prunes its stale chunks
- Deletes and moves
- Failures are logged and do not stop the updater
- Events submitted from another thread are applied in order
- Watchdog event filtering
"""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from rag_assistant.core.errors import EmbeddingError
from rag_assistant.core.services.ingest_service import DocumentProcessor
from rag_assistant.core.services.keyword_index import KeywordIndex
from rag_assistant.core.services.update_service import IndexUpdater
from rag_assistant.core.services.vector_index import VectorIndex
from rag_assistant.infrastructure.embeddings import OfflineEmbedder
from rag_assistant.infrastructure.vector_stores.memory_store import InMemoryVectorStore
from rag_assistant.infrastructure.watchers.corpus_watcher import CorpusEventHandler

THREE_SECTIONS = (
    "# Um\n\nalfa beta gama\n\n"
    "# Dois\n\ndelta épsilon zeta\n\n"
    "# Três\n\neta teta iota\n"
)


@pytest.fixture
def docs(tmp_path: Path) -> Path:
    root = tmp_path / "docs"
    root.mkdir()
    (root / "guia.md").write_text(THREE_SECTIONS, encoding="utf-8")
    (root / "outro.md").write_text("# Outro\n\nfrete grátis\n", encoding="utf-8")
    return root


@pytest.fixture
def stack(docs: Path):
    store = InMemoryVectorStore()
    keyword_index = KeywordIndex()
    updater = IndexUpdater(
        DocumentProcessor(docs, max_words=6),
        VectorIndex(OfflineEmbedder(), store),
        keyword_index,
        watch=False,
    )
    return updater, store, keyword_index


class TestInitialIndex:
    """Tests for bulk indexing"""

    @pytest.mark.asyncio
    async def test_indexes_both_sides(self, stack):
        updater, store, keyword_index = stack

        count = await updater.initialize()

        assert count == 4
        assert store.count() == 4
        assert len(keyword_index) == 4
        assert keyword_index.files() == ["guia.md", "outro.md"]

    @pytest.mark.asyncio
    async def test_load_keyword_index_only(self, stack):
        updater, store, keyword_index = stack
        assert await updater.load_keyword_index() == 4
        assert store.count() == 0
        assert len(keyword_index) == 4


class TestIncrementalUpdates:
    """Tests for per-file re-indexing"""

    @pytest.mark.asyncio
    async def test_shrunk_file_prunes_stale_chunks(self, stack, docs):
        """3 chunks -> 1 chunk leaves no trace of chunks 1 and 2"""
        updater, store, keyword_index = stack
        await updater.initial_index()

        path = docs / "guia.md"
        path.write_text("# Um\n\nalfa beta gama\n", encoding="utf-8")
        chunks = await updater.reindex_file(path)

        assert [c.id for c in chunks] == ["guia.md_chunk_0"]
        assert keyword_index.chunk_ids("guia.md") == ["guia.md_chunk_0"]
        assert store.count() == 2
        assert keyword_index.search("teta") == []

    @pytest.mark.asyncio
    async def test_new_file(self, stack, docs):
        updater, store, keyword_index = stack
        await updater.initial_index()

        path = docs / "sub" / "novo.md"
        path.parent.mkdir()
        path.write_text("# Novo\n\ndepósito central\n", encoding="utf-8")
        await updater.handle_event("changed", path)

        assert keyword_index.chunk_ids("sub/novo.md") == ["sub/novo.md_chunk_0"]
        assert store.count() == 5

    @pytest.mark.asyncio
    async def test_deleted_file(self, stack, docs):
        updater, store, keyword_index = stack
        await updater.initial_index()

        path = docs / "guia.md"
        path.unlink()
        await updater.handle_event("deleted", path)

        assert keyword_index.files() == ["outro.md"]
        assert store.count() == 1

    @pytest.mark.asyncio
    async def test_moved_file(self, stack, docs):
        updater, store, keyword_index = stack
        await updater.initial_index()

        src, dest = docs / "outro.md", docs / "renomeado.md"
        src.rename(dest)
        await updater.handle_event("moved", src, dest)

        assert keyword_index.files() == ["guia.md", "renomeado.md"]
        assert store.count() == 4

    @pytest.mark.asyncio
    async def test_embedding_failure_is_logged(self, docs):
        """The keyword index keeps the previous generation on failure"""
        keyword_index = KeywordIndex()
        vector_index = MagicMock()
        vector_index.index_documents = AsyncMock(side_effect=EmbeddingError("provider down"))
        updater = IndexUpdater(DocumentProcessor(docs), vector_index, keyword_index, watch=False)

        assert await updater.reindex_file(docs / "guia.md") is None
        assert keyword_index.files() == []

    @pytest.mark.asyncio
    async def test_unreadable_file(self, stack, docs):
        updater, _, keyword_index = stack
        assert await updater.reindex_file(docs / "missing.md") is None
        assert len(keyword_index) == 0


class TestEventQueue:
    """Tests for thread-to-loop event hand-off"""

    @pytest.mark.asyncio
    async def test_events_from_another_thread(self, stack, docs):
        updater, store, keyword_index = stack
        await updater.initial_index()

        with patch(
            "rag_assistant.infrastructure.watchers.corpus_watcher.CorpusWatcher"
        ) as watcher_cls:
            updater.start_watching()

        watcher_cls.assert_called_once_with(docs, {".md", ".markdown"}, updater.submit_threadsafe)
        watcher_cls.return_value.start.assert_called_once()

        path = docs / "guia.md"
        path.unlink()
        await asyncio.to_thread(updater.submit_threadsafe, "deleted", path, None)
        await asyncio.sleep(0)
        await updater.drain()

        assert keyword_index.files() == ["outro.md"]
        assert store.count() == 1

        await updater.shutdown()
        watcher_cls.return_value.stop.assert_called_once()

    def test_submit_before_start_is_ignored(self, stack, docs):
        updater, _, _ = stack
        updater.submit_threadsafe("changed", docs / "guia.md")

    @pytest.mark.asyncio
    async def test_missing_docs_path_skips_watching(self, tmp_path):
        updater = IndexUpdater(
            DocumentProcessor(tmp_path / "nope"),
            VectorIndex(OfflineEmbedder(), InMemoryVectorStore()),
            KeywordIndex(),
            watch=True,
        )

        assert await updater.initialize() == 0
        assert updater._worker is None
        await updater.shutdown()

    @pytest.mark.asyncio
    async def test_watcher_start_failure_leaves_no_worker(self, stack):
        """A watcher that cannot start does not leave a worker task behind"""
        updater, _, _ = stack
        with patch(
            "rag_assistant.infrastructure.watchers.corpus_watcher.CorpusWatcher"
        ) as watcher_cls:
            watcher_cls.return_value.start.side_effect = OSError("inotify watch limit reached")
            with pytest.raises(OSError):
                updater.start_watching()

        assert updater._worker is None
        updater.submit_threadsafe("changed", Path("guia.md"))


class TestCorpusEventHandler:
    """Tests for watchdog event filtering"""

    def _handler(self):
        callback = MagicMock()
        return CorpusEventHandler(callback, [".md"]), callback

    def test_created_and_modified(self):
        handler, callback = self._handler()
        handler.on_created(FileCreatedEvent("/docs/a.md"))
        handler.on_modified(FileModifiedEvent("/docs/a.md"))
        assert [c.args[0] for c in callback.call_args_list] == ["changed", "changed"]

    def test_ignores_other_extensions_and_directories(self):
        handler, callback = self._handler()
        handler.on_created(FileCreatedEvent("/docs/a.txt"))
        handler.on_created(DirCreatedEvent("/docs/novo.md"))
        callback.assert_not_called()

    def test_deleted(self):
        handler, callback = self._handler()
        handler.on_deleted(FileDeletedEvent("/docs/a.md"))
        callback.assert_called_once_with("deleted", Path("/docs/a.md"), None)

    def test_moves(self):
        handler, callback = self._handler()
        handler.on_moved(FileMovedEvent("/docs/a.md", "/docs/b.md"))
        handler.on_moved(FileMovedEvent("/docs/a.md", "/docs/a.md.bak"))
        handler.on_moved(FileMovedEvent("/docs/a.tmp", "/docs/a.md"))

        assert callback.call_args_list[0].args == ("moved", Path("/docs/a.md"), Path("/docs/b.md"))
        assert callback.call_args_list[1].args == ("deleted", Path("/docs/a.md"), None)
        assert callback.call_args_list[2].args == ("changed", Path("/docs/a.md"), None)
