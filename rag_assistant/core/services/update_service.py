"""Update service - bulk indexing and incremental re-indexing."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from ..models.document import DocumentChunk
from .ingest_service import DocumentProcessor
from .keyword_index import KeywordIndex
from .vector_index import VectorIndex

logger = logging.getLogger(__name__)


class IndexUpdater:
    """Keeps the vector and keyword indexes in step with the corpus.

    Filesystem events arrive on the watcher thread and are handed to the
    event loop through a queue; one background task applies them in order.
    """

    def __init__(
        self,
        processor: DocumentProcessor,
        vector_index: VectorIndex,
        keyword_index: KeywordIndex,
        watch: bool = True,
    ):
        """Initialize updater.

        Args:
            processor: Corpus chunker.
            vector_index: Semantic index.
            keyword_index: Lexical index.
            watch: Start the filesystem watcher after bulk indexing.
        """
        self._processor = processor
        self._vector_index = vector_index
        self._keyword_index = keyword_index
        self._watch = watch
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._watcher = None

    async def initial_index(self) -> int:
        """Index the whole corpus.

        Returns:
            Number of chunks indexed.
        """
        logger.info("Starting initial indexing...")
        chunks = await asyncio.to_thread(self._processor.load_all_documents)
        await self._vector_index.ensure_collection()
        await self._vector_index.index_documents(chunks)
        self._keyword_index.index_documents(chunks)
        logger.info(f"Initial indexing complete: {len(chunks)} chunks")
        return len(chunks)

    async def load_keyword_index(self) -> int:
        """Rebuild only the keyword index, for a vector store indexed earlier."""
        chunks = await asyncio.to_thread(self._processor.load_all_documents)
        self._keyword_index.index_documents(chunks)
        return len(chunks)

    async def initialize(self) -> int:
        count = await self.initial_index()
        if self._watch:
            self.start_watching()
        return count

    def start_watching(self) -> None:
        """Start the watcher and the worker task (requires a running loop)."""
        from ...infrastructure.watchers.corpus_watcher import CorpusWatcher

        if self._worker is not None:
            return
        if not self._processor.docs_path.is_dir():
            logger.warning(f"Docs path not found, not watching: {self._processor.docs_path}")
            return

        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        watcher = CorpusWatcher(
            self._processor.docs_path,
            self._processor.loader.extensions,
            self.submit_threadsafe,
        )
        try:
            watcher.start()
        except Exception:
            self._loop = None
            self._queue = None
            raise

        self._watcher = watcher
        self._worker = asyncio.create_task(self._run_worker())

    def submit_threadsafe(self, kind: str, path: Path, dest: Optional[Path] = None) -> None:
        """Queue a filesystem event from any thread."""
        if self._loop is None or self._queue is None:
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, (kind, path, dest))

    async def _run_worker(self) -> None:
        while True:
            kind, path, dest = await self._queue.get()
            try:
                await self.handle_event(kind, path, dest)
            finally:
                self._queue.task_done()

    async def handle_event(self, kind: str, path: Path, dest: Optional[Path] = None) -> None:
        if kind == "changed":
            logger.info(f"Document changed: {path}")
            await self.reindex_file(path)
        elif kind == "deleted":
            logger.info(f"Document removed: {path}")
            await self.remove_file(path)
        elif kind == "moved":
            logger.info(f"Document moved: {path} -> {dest}")
            await self.remove_file(path)
            if dest is not None:
                await self.reindex_file(dest)

    async def reindex_file(self, path: Path) -> Optional[list[DocumentChunk]]:
        """Re-chunk one file and replace its partition in both indexes.

        Errors are logged; the worker keeps running.
        """
        relative_path = self._processor.relative_path(path)
        try:
            chunks = await asyncio.to_thread(self._processor.process_file, path)
            if chunks is None:
                return None
            await self._vector_index.index_documents(chunks)
            self._keyword_index.replace_file(relative_path, chunks)
            await self._vector_index.remove_stale(relative_path, keep=len(chunks))
        except Exception as e:
            logger.error(f"Error reindexing {path}: {e}")
            return None

        logger.info(f"Reindexed: {relative_path} ({len(chunks)} chunks)")
        return chunks

    async def remove_file(self, path: Path) -> None:
        relative_path = self._processor.relative_path(path)
        self._keyword_index.remove_file(relative_path)
        try:
            await self._vector_index.remove_stale(relative_path, keep=0)
        except Exception as e:
            logger.error(f"Error removing {relative_path} from vector index: {e}")

    async def drain(self) -> None:
        """Wait until every queued event has been applied."""
        if self._queue is not None:
            await self._queue.join()

    async def shutdown(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        self._queue = None
        self._loop = None
