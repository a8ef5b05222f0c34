"""Keyword index - in-memory lexical search over document chunks."""

import logging
from types import MappingProxyType
from typing import Iterable, Mapping

from ..models.document import DocumentChunk, KeywordHit
from ..tokens import tokenize

logger = logging.getLogger(__name__)

EXACT_MATCH_SCORE = 10.0
TITLE_TERM_SCORE = 5.0
TAG_TERM_SCORE = 3.0
CONTENT_TERM_SCORE = 0.5


def score_chunk(query: str, chunk: DocumentChunk, query_terms: list[str] | None = None) -> float:
    """Lexical relevance of a chunk for a query."""
    if query_terms is None:
        query_terms = tokenize(query)

    content_lower = chunk.content.lower()
    score = 0.0

    if query.lower() in content_lower:
        score += EXACT_MATCH_SCORE

    title_tokens = set(tokenize(chunk.title))
    tags = {tag.lower() for tag in chunk.tags}
    content_tokens = tokenize(chunk.content)

    for term in query_terms:
        if term in title_tokens:
            score += TITLE_TERM_SCORE
        if term in tags:
            score += TAG_TERM_SCORE
        score += content_tokens.count(term) * CONTENT_TERM_SCORE

    return score


class KeywordIndex:
    """Chunks partitioned by file path.

    Every mutation builds a new mapping and swaps it in with a single
    assignment, so a concurrent search sees either the old or the new
    partition of a file, never a mix.
    """

    def __init__(self, chunks: Iterable[DocumentChunk] = ()):
        self._partitions: Mapping[str, tuple[DocumentChunk, ...]] = MappingProxyType({})
        self.index_documents(chunks)

    def __len__(self) -> int:
        return sum(len(p) for p in self._partitions.values())

    def files(self) -> list[str]:
        return sorted(self._partitions)

    def chunk_ids(self, file_path: str) -> list[str]:
        return [c.id for c in self._partitions.get(file_path, ())]

    def index_documents(self, chunks: Iterable[DocumentChunk]) -> None:
        """Replace the partitions of every file present in chunks."""
        grouped: dict[str, list[DocumentChunk]] = {}
        for chunk in chunks:
            grouped.setdefault(chunk.file_path, []).append(chunk)
        if not grouped:
            return

        partitions = dict(self._partitions)
        for file_path, file_chunks in grouped.items():
            partitions[file_path] = tuple(sorted(file_chunks, key=lambda c: c.chunk_index))
        self._partitions = MappingProxyType(partitions)
        logger.info(f"Keyword index: {len(self)} chunks in {len(partitions)} files")

    def replace_file(self, file_path: str, chunks: Iterable[DocumentChunk]) -> None:
        """Swap one file's partition for a new generation of chunks."""
        partitions = dict(self._partitions)
        partitions[file_path] = tuple(sorted(chunks, key=lambda c: c.chunk_index))
        self._partitions = MappingProxyType(partitions)

    def remove_file(self, file_path: str) -> None:
        if file_path not in self._partitions:
            return
        partitions = dict(self._partitions)
        del partitions[file_path]
        self._partitions = MappingProxyType(partitions)

    def search(self, query: str, top_k: int = 10) -> list[KeywordHit]:
        """Score every chunk against the query.

        Args:
            query: Search query.
            top_k: Number of results to return.

        Returns:
            Hits with a positive score, best first.
        """
        partitions = self._partitions
        query_terms = tokenize(query)

        hits = []
        for chunks in partitions.values():
            for chunk in chunks:
                score = score_chunk(query, chunk, query_terms)
                if score > 0:
                    hits.append(KeywordHit(chunk=chunk, score=score))

        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:top_k]
