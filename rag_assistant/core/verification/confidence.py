from typing import Optional, Sequence

from ..models.verification import ConfidenceLevel, ConfidenceResult, VerificationResult

BASE_SCORE = 0.5
DOCUMENTS_BONUS = 0.2
VERIFIED_BONUS = 0.2
TECHNICAL_BONUS = 0.1


class ConfidenceScorer:
    """Additive confidence score for a generated answer."""

    def calculate(
        self,
        retrieved_docs: Sequence[object],
        verification: Optional[VerificationResult] = None,
        question_category: Optional[str] = None,
    ) -> ConfidenceResult:
        """Score an answer.

        Args:
            retrieved_docs: Documents used as context.
            verification: Verification outcome, if any.
            question_category: Category from classification.

        Returns:
            Score in [0, 1] and its level.
        """
        score = BASE_SCORE
        if retrieved_docs:
            score += DOCUMENTS_BONUS
        if verification is not None and verification.is_verified:
            score += VERIFIED_BONUS
        if question_category == "technical":
            score += TECHNICAL_BONUS

        score = min(score, 1.0)
        return ConfidenceResult(score=score, level=self.level_for(score))

    @staticmethod
    def level_for(score: float) -> ConfidenceLevel:
        if score > 0.7:
            return ConfidenceLevel.HIGH
        if score > 0.5:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW
