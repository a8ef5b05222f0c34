"""Ingest service - corpus loading and chunking."""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..models.document import DocumentChunk, chunk_id_for

logger = logging.getLogger(__name__)

_FRONTMATTER_RE = re.compile(r"\A---\r?\n(.*?)\r?\n---(?:\r?\n(.*))?\Z", re.DOTALL)
_HEADER_SPLIT_RE = re.compile(r"(?=^#{1,3} )", re.MULTILINE)

# Front-matter keys, English first, then the Portuguese used by the corpus
_TITLE_KEYS = ("title", "titulo")
_CATEGORY_KEYS = ("category", "categoria")
_DIFFICULTY_KEYS = ("difficulty", "dificuldade")
_LAST_UPDATE_KEYS = ("last_update", "ultima_atualizacao")

DEFAULT_CATEGORY = "geral"
DEFAULT_DIFFICULTY = "intermediario"


def _first(meta: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = meta.get(key)
        if value:
            return value
    return None


def _text(value: Any) -> Optional[str]:
    """Scalar front-matter value as text; list values are joined."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value) or None
    return str(value)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable last update timestamp: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _word_count(text: str) -> int:
    return len(text.split())


class DocumentProcessor:
    """Walks a corpus directory and splits each file into chunks."""

    def __init__(
        self,
        docs_path: str | Path,
        max_words: int = 500,
        loader: Optional["TextLoader"] = None,
    ):
        """Initialize processor.

        Args:
            docs_path: Corpus root.
            max_words: Word ceiling per chunk.
            loader: File loader deciding which extensions are read.
        """
        self._docs_path = Path(docs_path)
        self._max_words = max_words
        self._loader = loader

    @property
    def docs_path(self) -> Path:
        return self._docs_path

    @property
    def loader(self):
        """Lazy load document loader."""
        if self._loader is None:
            from ...infrastructure.document_loaders import TextLoader

            self._loader = TextLoader()
        return self._loader

    def supports(self, file_path: Path) -> bool:
        return self.loader.supports(file_path)

    def relative_path(self, file_path: Path) -> str:
        """Corpus-relative POSIX path used in chunk ids."""
        try:
            return file_path.resolve().relative_to(self._docs_path.resolve()).as_posix()
        except ValueError:
            return file_path.as_posix()

    def load_all_documents(self) -> list[DocumentChunk]:
        """Chunk every supported file under the corpus root.

        Returns:
            Chunks of all files, in path order.
        """
        if not self._docs_path.exists():
            logger.error(f"Docs path not found: {self._docs_path}")
            return []

        chunks: list[DocumentChunk] = []
        files = 0
        for file_path in sorted(self._docs_path.rglob("*")):
            if not file_path.is_file() or not self.supports(file_path):
                continue
            file_chunks = self.process_file(file_path)
            if file_chunks:
                chunks.extend(file_chunks)
                files += 1

        logger.info(f"Loaded {len(chunks)} chunks from {files} documents")
        return chunks

    def process_file(self, file_path: Path) -> Optional[list[DocumentChunk]]:
        """Parse and chunk one file.

        Returns:
            The file's chunks, or None if the file could not be read.
        """
        try:
            text = self.loader.load(file_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error processing file {file_path}: {e}")
            return None

        meta, body = self.parse_frontmatter(text)
        relative_path = self.relative_path(file_path)
        texts = self.chunk_document(body, self._max_words)

        if "last_update" in meta or "ultima_atualizacao" in meta:
            last_update = _parse_timestamp(_first(meta, _LAST_UPDATE_KEYS))
        else:
            last_update = datetime.now(timezone.utc)

        tags = meta.get("tags") or []
        if isinstance(tags, str):
            tags = [tags]

        return [
            DocumentChunk(
                id=chunk_id_for(relative_path, index),
                file_path=relative_path,
                title=_text(_first(meta, _TITLE_KEYS)) or file_path.stem,
                category=_text(_first(meta, _CATEGORY_KEYS)) or DEFAULT_CATEGORY,
                tags=frozenset(t for t in tags if t),
                difficulty=_text(_first(meta, _DIFFICULTY_KEYS)) or DEFAULT_DIFFICULTY,
                content=chunk_text,
                full_content=body,
                chunk_index=index,
                total_chunks=len(texts),
                last_update=last_update,
            )
            for index, chunk_text in enumerate(texts)
        ]

    @staticmethod
    def parse_frontmatter(text: str) -> tuple[dict[str, Any], str]:
        """Split a ``---`` delimited metadata block from the body.

        ``key: value`` lines become entries; ``[a, b]`` values become lists.
        """
        match = _FRONTMATTER_RE.match(text)
        if not match:
            return {}, text

        meta: dict[str, Any] = {}
        for line in match.group(1).splitlines():
            key, sep, raw = line.partition(":")
            if not sep or not key.strip():
                continue
            value: Any = raw.strip()
            if value.startswith("[") and value.endswith("]"):
                value = [v.strip().strip("\"'") for v in value[1:-1].split(",")]
                value = [v for v in value if v]
            elif len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                value = value[1:-1]
            meta[key.strip()] = value

        return meta, match.group(2) or ""

    def chunk_document(self, content: str, max_words: Optional[int] = None) -> list[str]:
        """Split text on header boundaries into chunks of at most max_words.

        Args:
            content: Markdown body.
            max_words: Word ceiling (defaults to the processor's).

        Returns:
            At least one chunk.
        """
        max_words = max_words or self._max_words
        clean = re.sub(r"\n{3,}", "\n\n", content).strip()

        sections: list[str] = []
        for section in _HEADER_SPLIT_RE.split(clean):
            if not section.strip():
                continue
            if _word_count(section) > max_words:
                sections.extend(self._split_oversized(section, max_words))
            else:
                sections.append(section.strip())

        chunks: list[str] = []
        current: list[str] = []
        words = 0
        for section in sections:
            section_words = _word_count(section)
            if current and words + section_words > max_words:
                chunks.append("\n\n".join(current))
                current, words = [], 0
            current.append(section)
            words += section_words

        if current:
            chunks.append("\n\n".join(current))

        return chunks or [clean]

    @staticmethod
    def _split_oversized(section: str, max_words: int) -> list[str]:
        """Split a section larger than the ceiling by paragraphs, then words."""
        pieces: list[str] = []
        for para in re.split(r"\n\s*\n", section):
            para = para.strip()
            if not para:
                continue
            words = para.split()
            if len(words) <= max_words:
                pieces.append(para)
                continue
            for i in range(0, len(words), max_words):
                pieces.append(" ".join(words[i : i + max_words]))
        return pieces
