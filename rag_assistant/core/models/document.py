"""Document domain models."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


def chunk_id_for(file_path: str, chunk_index: int) -> str:
    """Deterministic chunk id for a file path and chunk position."""
    return f"{file_path}_chunk_{chunk_index}"


@dataclass(frozen=True)
class DocumentChunk:
    """Document chunk for indexing. Immutable once created."""
    id: str
    file_path: str
    title: str
    category: str
    tags: frozenset[str]
    difficulty: str
    content: str
    full_content: str
    chunk_index: int
    total_chunks: int
    last_update: Optional[datetime] = None

    def to_payload(self) -> dict[str, Any]:
        """Vector store payload (full document body is not stored)."""
        return {
            "chunk_id": self.id,
            "file_path": self.file_path,
            "title": self.title,
            "category": self.category,
            "tags": sorted(self.tags),
            "difficulty": self.difficulty,
            "content": self.content,
            "chunk_index": self.chunk_index,
            "total_chunks": self.total_chunks,
            "last_update": self.last_update.isoformat() if self.last_update else None,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "DocumentChunk":
        last_update = payload.get("last_update")
        content = payload.get("content", "")
        file_path = payload.get("file_path", "")
        chunk_index = int(payload.get("chunk_index", 0))
        return cls(
            id=payload.get("chunk_id") or chunk_id_for(file_path, chunk_index),
            file_path=file_path,
            title=payload.get("title", ""),
            category=payload.get("category", ""),
            tags=frozenset(payload.get("tags") or []),
            difficulty=payload.get("difficulty", ""),
            content=content,
            full_content=content,
            chunk_index=chunk_index,
            total_chunks=int(payload.get("total_chunks", 1)),
            last_update=datetime.fromisoformat(last_update) if last_update else None,
        )


@dataclass
class VectorPoint:
    """Point written to the vector store."""
    id: str
    vector: list[float]
    payload: dict[str, Any]


@dataclass
class VectorHit:
    """Search hit returned by the vector store."""
    id: str
    score: float
    payload: dict[str, Any]


@dataclass
class KeywordHit:
    """Search hit returned by the keyword index."""
    chunk: DocumentChunk
    score: float

    @property
    def id(self) -> str:
        return self.chunk.id


@dataclass
class RetrievalCandidate:
    """Fused search candidate, created per query."""
    id: str
    payload: DocumentChunk
    vector_score: float = 0.0
    # Normalised by the highest keyword score of the query
    keyword_score: float = 0.0
    combined_score: float = 0.0
    final_score: float = 0.0
    reranked: bool = False

    @property
    def score(self) -> float:
        """Final score if reranked, else combined."""
        return self.final_score if self.reranked else self.combined_score


@dataclass
class PackedDocument:
    """Chunk selected for the prompt context, possibly truncated."""
    chunk: DocumentChunk
    content: str
    truncated: bool = False

    @property
    def title(self) -> str:
        return self.chunk.title


@dataclass
class ContextBundle:
    """Documents packed into the token budget."""
    documents: list[PackedDocument] = field(default_factory=list)
    total_tokens: int = 0

    @property
    def sources(self) -> list[str]:
        """Distinct document titles in packing order."""
        seen = set()
        sources = []
        for doc in self.documents:
            if doc.title not in seen:
                seen.add(doc.title)
                sources.append(doc.title)
        return sources


@dataclass
class RetrievedContext:
    """Formatted retrieval result handed to the generation step."""
    context: str
    sources: list[str]
    document_count: int
    estimated_tokens: int

    @classmethod
    def empty(cls) -> "RetrievedContext":
        return cls(context="", sources=[], document_count=0, estimated_tokens=0)

    @property
    def metadata(self) -> dict[str, int]:
        return {
            "document_count": self.document_count,
            "estimated_tokens": self.estimated_tokens,
        }
