import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

# (kind, path, destination) with kind in "changed" | "deleted" | "moved"
EventCallback = Callable[[str, Path, Optional[Path]], None]


class CorpusEventHandler(FileSystemEventHandler):
    """Forwards file events for recognised extensions to a callback.

    Runs on the observer thread; the callback must be thread-safe.
    """

    def __init__(self, callback: EventCallback, extensions: Iterable[str]):
        super().__init__()
        self._callback = callback
        self._extensions = {e.lower() for e in extensions}

    def _relevant(self, path: str) -> bool:
        return Path(path).suffix.lower() in self._extensions

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._relevant(event.src_path):
            self._callback("changed", Path(event.src_path), None)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._relevant(event.src_path):
            self._callback("changed", Path(event.src_path), None)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._relevant(event.src_path):
            self._callback("deleted", Path(event.src_path), None)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        src_ok = self._relevant(event.src_path)
        dest_ok = self._relevant(event.dest_path)
        if src_ok and dest_ok:
            self._callback("moved", Path(event.src_path), Path(event.dest_path))
        elif src_ok:
            self._callback("deleted", Path(event.src_path), None)
        elif dest_ok:
            self._callback("changed", Path(event.dest_path), None)


class CorpusWatcher:
    """Recursive watchdog observer over the corpus directory."""

    def __init__(self, docs_path: str | Path, extensions: Iterable[str], callback: EventCallback):
        """Initialize watcher.

        Args:
            docs_path: Corpus root.
            extensions: Recognised file suffixes.
            callback: Receives (kind, path, destination) per event.
        """
        self._docs_path = Path(docs_path)
        self._handler = CorpusEventHandler(callback, extensions)
        self._observer: Optional[Observer] = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = Observer()
        observer.schedule(self._handler, str(self._docs_path), recursive=True)
        observer.start()
        self._observer = observer
        logger.info(f"Watching for documentation changes in {self._docs_path}")

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        logger.info("Stopped watching for changes")
