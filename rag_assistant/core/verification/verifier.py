"""Answer verifiers."""

import logging
import re
from abc import ABC, abstractmethod

from ..models.outcome import Outcome
from ..models.verification import VerificationResult
from ..prompts import build_verification_prompt
from ..protocols.llm import LLMProtocol
from ..tokens import tokenize

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)*")
_LIST_MARKER_RE = re.compile(r"^\s*\d+[.)]\s", re.MULTILINE)


class Verifier(ABC):
    """Checks a generated answer against the retrieved context."""

    @abstractmethod
    async def verify(self, question: str, answer: str, context: str) -> VerificationResult:
        ...


class PassThroughVerifier(Verifier):
    """Accepts every answer with a fixed confidence."""

    def __init__(self, confidence: float = 0.85):
        self._confidence = confidence

    async def verify(self, question: str, answer: str, context: str) -> VerificationResult:
        return VerificationResult(
            is_verified=True, has_hallucination=False, confidence=self._confidence
        )


class ContextOverlapVerifier(Verifier):
    """Lexical grounding check.

    An answer is verified when enough of its terms occur in the context.
    Numbers quoted in the answer that never appear in the context are
    treated as hallucinations.
    """

    def __init__(self, min_overlap: float = 0.5):
        """Initialize verifier.

        Args:
            min_overlap: Share of answer terms that must occur in the context.
        """
        self._min_overlap = min_overlap

    async def verify(self, question: str, answer: str, context: str) -> VerificationResult:
        if not context.strip():
            return VerificationResult.unverified()

        answer_terms = set(tokenize(answer))
        context_terms = set(tokenize(context))
        overlap = (
            len(answer_terms & context_terms) / len(answer_terms) if answer_terms else 0.0
        )

        context_numbers = set(_NUMBER_RE.findall(context))
        answer_text = _LIST_MARKER_RE.sub(" ", answer)
        invented = [n for n in _NUMBER_RE.findall(answer_text) if n not in context_numbers]
        has_hallucination = bool(invented)
        if invented:
            logger.info(f"Numbers not found in context: {invented[:5]}")

        return VerificationResult(
            is_verified=overlap >= self._min_overlap and not has_hallucination,
            has_hallucination=has_hallucination,
            confidence=round(overlap, 4),
        )


class LLMVerifier(Verifier):
    """Asks the model to compare the answer with the context."""

    def __init__(self, llm: LLMProtocol):
        self._llm = llm

    async def verify(self, question: str, answer: str, context: str) -> VerificationResult:
        data = await self._llm.complete_json(build_verification_prompt(question, answer, context))
        is_accurate = bool(data.get("isAccurate", False))
        return VerificationResult(
            is_verified=is_accurate,
            has_hallucination=not is_accurate and bool(data.get("inconsistencies")),
            confidence=float(data.get("confidence", 0.5)),
        )


async def verify_safely(
    verifier: Verifier, question: str, answer: str, context: str
) -> Outcome[VerificationResult]:
    """Run a verifier, returning failures as values.

    The caller substitutes ``VerificationResult.unverified()`` on failure.
    """
    try:
        return Outcome.success(await verifier.verify(question, answer, context))
    except Exception as e:
        logger.error(f"Error verifying response: {e}")
        return Outcome.failure(e)
