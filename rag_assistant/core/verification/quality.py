"""Heuristic quality checks for generated answers."""

import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Any, Optional

from ..models.verification import ConfidenceResult, QualityReport
from ..prompts import build_accuracy_prompt
from ..protocols.llm import LLMProtocol

logger = logging.getLogger(__name__)

CHECK_WEIGHTS = {
    "grammar": 0.2,
    "completeness": 0.2,
    "relevance": 0.3,
    "formatting": 0.1,
    "accuracy": 0.2,
}

MIN_ANSWER_LENGTH = 50
MAX_ANSWER_LENGTH = 5000
MIN_RELEVANCE = 0.3
PASS_SCORE = 0.7


@dataclass
class QualityMetrics:
    total_questions: int = 0
    correct_answers: int = 0
    avg_confidence: float = 0.0
    avg_response_time_ms: float = 0.0

    @property
    def accuracy(self) -> float:
        """Share of correct answers, in percent."""
        if not self.total_questions:
            return 0.0
        return self.correct_answers / self.total_questions * 100


class QualityChecker:
    """Scores answers on grammar, completeness, relevance, formatting and accuracy."""

    def __init__(self, llm: Optional[LLMProtocol] = None):
        """Initialize checker.

        Args:
            llm: Model used for the accuracy comparison (skipped if None).
        """
        self._llm = llm
        self.metrics = QualityMetrics()

    async def check_quality(
        self, question: str, answer: str, expected_answer: Optional[str] = None
    ) -> QualityReport:
        """Run all checks and compute the weighted score.

        Args:
            question: User question.
            answer: Generated answer.
            expected_answer: Reference answer for the accuracy check.

        Returns:
            Per-check results, overall score and pass flag.
        """
        checks: dict[str, dict[str, Any]] = {
            "grammar": self.check_grammar(answer),
            "completeness": self.check_completeness(answer),
            "relevance": self.check_relevance(question, answer),
            "formatting": self.check_formatting(answer),
        }
        if expected_answer and self._llm is not None:
            checks["accuracy"] = await self.check_accuracy(answer, expected_answer)

        score = self.overall_score(checks)
        return QualityReport(passed=score >= PASS_SCORE, score=score, checks=checks)

    @staticmethod
    def check_grammar(answer: str) -> dict[str, Any]:
        issues = []
        if not re.search(r"[.!?]$", answer):
            issues.append("Incomplete sentence")

        words = answer.lower().split()
        if words:
            max_repetition = max(Counter(words).values())
            if max_repetition > 10 and len(words) > 50:
                issues.append("Excessive word repetition")

        return {"passed": not issues, "issues": issues}

    @staticmethod
    def check_completeness(answer: str) -> dict[str, Any]:
        length = len(answer)
        return {
            "passed": MIN_ANSWER_LENGTH <= length <= MAX_ANSWER_LENGTH,
            "length": length,
            "min_length": MIN_ANSWER_LENGTH,
            "max_length": MAX_ANSWER_LENGTH,
        }

    @staticmethod
    def check_relevance(question: str, answer: str) -> dict[str, Any]:
        terms = [t for t in question.lower().split() if len(t) > 3]
        answer_lower = answer.lower()
        matching = sum(1 for t in terms if t in answer_lower)
        score = matching / len(terms) if terms else 0.5
        return {
            "passed": score >= MIN_RELEVANCE,
            "score": score,
            "matching_terms": matching,
            "total_terms": len(terms),
        }

    @staticmethod
    def check_formatting(answer: str) -> dict[str, Any]:
        # Informational only, always passes
        return {
            "passed": True,
            "has_markdown": any(marker in answer for marker in ("**", "##", "- ")),
            "has_paragraphs": len(answer.split("\n\n")) > 1,
            "has_structure": re.search(r"^#{1,3}\s", answer, re.MULTILINE) is not None,
        }

    async def check_accuracy(self, answer: str, expected_answer: str) -> dict[str, Any]:
        try:
            data = await self._llm.complete_json(build_accuracy_prompt(answer, expected_answer))
        except Exception as e:
            logger.error(f"Error checking accuracy: {e}")
            return {"passed": False, "error": str(e)}

        return {
            "passed": bool(data.get("isAccurate", False)),
            "similarity": float(data.get("similarity", 0.0)),
            "differences": list(data.get("differences") or []),
        }

    @staticmethod
    def overall_score(checks: dict[str, dict[str, Any]]) -> float:
        total_score = 0.0
        total_weight = 0.0
        for name, result in checks.items():
            weight = CHECK_WEIGHTS.get(name)
            if not weight:
                continue
            score = 1.0 if result.get("passed") else float(result.get("score") or 0.0)
            total_score += score * weight
            total_weight += weight
        return total_score / total_weight if total_weight else 0.5

    def update_metrics(
        self, confidence: ConfidenceResult, response_time_ms: float, correct: bool = False
    ) -> None:
        """Fold one answer into the running averages."""
        m = self.metrics
        m.total_questions += 1
        if correct:
            m.correct_answers += 1
        n = m.total_questions
        m.avg_confidence = (m.avg_confidence * (n - 1) + confidence.score) / n
        m.avg_response_time_ms = (m.avg_response_time_ms * (n - 1) + response_time_ms) / n
