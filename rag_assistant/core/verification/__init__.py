"""Answer verification, confidence scoring and fallback."""
from .verifier import (
    Verifier,
    PassThroughVerifier,
    ContextOverlapVerifier,
    LLMVerifier,
    verify_safely,
)
from .confidence import ConfidenceScorer
from .fallback import FallbackPolicy
from .quality import QualityChecker, QualityMetrics

__all__ = [
    "Verifier",
    "PassThroughVerifier",
    "ContextOverlapVerifier",
    "LLMVerifier",
    "verify_safely",
    "ConfidenceScorer",
    "FallbackPolicy",
    "QualityChecker",
    "QualityMetrics",
]
