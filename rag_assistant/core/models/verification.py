"""Answer verification domain models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ConfidenceLevel(Enum):
    """Confidence level of a generated answer."""
    HIGH = "high"      # > 0.7
    MEDIUM = "medium"  # > 0.5
    LOW = "low"


@dataclass
class ConfidenceResult:
    score: float
    level: ConfidenceLevel


@dataclass
class VerificationResult:
    """Outcome of checking an answer against the retrieved context."""
    is_verified: bool
    has_hallucination: bool
    confidence: float

    @classmethod
    def unverified(cls) -> "VerificationResult":
        """Neutral result used when verification itself fails."""
        return cls(is_verified=False, has_hallucination=False, confidence=0.5)


@dataclass
class SuggestedAction:
    type: str
    label: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "label": self.label}


@dataclass
class FallbackDecision:
    """Answer after the low-confidence policy has been applied."""
    answer: str
    sources: list[str] = field(default_factory=list)
    actions: list[SuggestedAction] = field(default_factory=list)
    disclaimer: Optional[str] = None


@dataclass
class QualityReport:
    """Heuristic answer quality checks."""
    passed: bool
    score: float
    checks: dict[str, dict[str, Any]]
