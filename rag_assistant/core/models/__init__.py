"""Domain models."""
from .document import (
    DocumentChunk,
    VectorPoint,
    VectorHit,
    KeywordHit,
    RetrievalCandidate,
    PackedDocument,
    ContextBundle,
    RetrievedContext,
    chunk_id_for,
)
from .chat import (
    ConversationTurn,
    Classification,
    GenerationMetadata,
    GenerationResult,
    StreamEvent,
    AssistantReply,
)
from .verification import (
    ConfidenceLevel,
    ConfidenceResult,
    VerificationResult,
    SuggestedAction,
    FallbackDecision,
    QualityReport,
)
from .outcome import Outcome

__all__ = [
    "DocumentChunk",
    "VectorPoint",
    "VectorHit",
    "KeywordHit",
    "RetrievalCandidate",
    "PackedDocument",
    "ContextBundle",
    "RetrievedContext",
    "chunk_id_for",
    "ConversationTurn",
    "Classification",
    "GenerationMetadata",
    "GenerationResult",
    "StreamEvent",
    "AssistantReply",
    "ConfidenceLevel",
    "ConfidenceResult",
    "VerificationResult",
    "SuggestedAction",
    "FallbackDecision",
    "QualityReport",
    "Outcome",
]
