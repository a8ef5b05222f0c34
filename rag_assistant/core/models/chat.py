"""Chat domain models."""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional

Role = Literal["user", "assistant", "system"]


@dataclass
class ConversationTurn:
    """Chat message read from the conversation store."""
    role: Role
    content: str
    category: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_message(self) -> dict[str, str]:
        """Convert to a chat-completions message."""
        role = self.role if self.role in ("user", "system") else "assistant"
        return {"role": role, "content": self.content}


@dataclass
class Classification:
    """Question classification returned by the model."""
    is_domain_related: bool
    confidence: float
    category: str
    reasoning: str = ""

    @classmethod
    def general(cls) -> "Classification":
        """Neutral classification used when the model call fails."""
        return cls(is_domain_related=False, confidence=0.5, category="general")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Classification":
        return cls(
            is_domain_related=bool(
                data.get("isDomainRelated", data.get("is_domain_related", False))
            ),
            confidence=float(data.get("confidence", 0.5)),
            category=str(data.get("category") or "general"),
            reasoning=str(data.get("reasoning", "")),
        )


@dataclass
class GenerationMetadata:
    """Timing and usage of one model call."""
    processing_time_ms: int
    tokens_used: int
    full_content: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "processing_time_ms": self.processing_time_ms,
            "tokens_used": self.tokens_used,
        }
        if self.full_content is not None:
            data["full_content"] = self.full_content
        return data


@dataclass
class GenerationResult:
    """Batch generation result."""
    content: str
    metadata: GenerationMetadata


@dataclass
class StreamEvent:
    """Event emitted by streaming generation.

    A stream is zero or more ``chunk`` events followed by exactly one
    terminal ``done`` or ``error`` event.
    """
    type: Literal["chunk", "done", "error"]
    content: Optional[str] = None
    metadata: Optional[GenerationMetadata] = None
    error: Optional[str] = None

    @classmethod
    def chunk(cls, content: str) -> "StreamEvent":
        return cls(type="chunk", content=content)

    @classmethod
    def done(cls, metadata: GenerationMetadata) -> "StreamEvent":
        return cls(type="done", metadata=metadata)

    @classmethod
    def failed(cls, error: str) -> "StreamEvent":
        return cls(type="error", error=error)

    @property
    def is_terminal(self) -> bool:
        return self.type in ("done", "error")

    def to_dict(self) -> dict[str, Any]:
        if self.type == "chunk":
            return {"type": "chunk", "content": self.content}
        if self.type == "done":
            return {
                "type": "done",
                "metadata": self.metadata.to_dict() if self.metadata else {},
            }
        return {"type": "error", "error": self.error}

    def to_sse(self) -> str:
        """Server-sent-events frame for the HTTP layer."""
        return f"data: {json.dumps(self.to_dict(), ensure_ascii=False)}\n\n"


@dataclass
class AssistantReply:
    """Final answer returned by the assistant pipeline."""
    answer: str
    sources: list[str]
    confidence: float
    level: str
    category: str
    disclaimer: Optional[str] = None
    actions: list[dict[str, str]] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "sources": self.sources,
            "confidence": self.confidence,
            "level": self.level,
            "category": self.category,
            "disclaimer": self.disclaimer,
            "actions": self.actions,
            "metadata": self.metadata,
        }
