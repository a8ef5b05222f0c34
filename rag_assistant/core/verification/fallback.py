import logging
from typing import Optional

from ..models.verification import ConfidenceResult, FallbackDecision, SuggestedAction

logger = logging.getLogger(__name__)

MODERATE_DISCLAIMER = (
    "Esta resposta tem confiança moderada. Recomendo verificar a documentação oficial."
)
LOW_DISCLAIMER = (
    "Não tenho certeza completa sobre esta resposta. "
    "Recomendo contatar o suporte ou consultar a documentação."
)
LOW_CONFIDENCE_ACTIONS = (
    SuggestedAction(type="contact_support", label="Falar com suporte"),
    SuggestedAction(type="view_docs", label="Ver documentação"),
)


class FallbackPolicy:
    """Attaches disclaimers and suggested actions to low-confidence answers."""

    def __init__(self, high_threshold: float = 0.7, moderate_threshold: float = 0.5):
        self._high = high_threshold
        self._moderate = moderate_threshold

    def decide(
        self,
        answer: str,
        confidence: ConfidenceResult,
        sources: Optional[list[str]] = None,
    ) -> FallbackDecision:
        """Apply the confidence tiers.

        Args:
            answer: Generated answer.
            confidence: Confidence of the answer.
            sources: Source titles used for the answer.

        Returns:
            Answer with disclaimer and actions for its tier.
        """
        sources = list(sources or [])

        if confidence.score >= self._high:
            return FallbackDecision(answer=answer, sources=sources)

        if confidence.score >= self._moderate:
            return FallbackDecision(
                answer=answer, sources=sources, disclaimer=MODERATE_DISCLAIMER
            )

        logger.info(f"Low confidence answer ({confidence.score:.2f}), suggesting actions")
        return FallbackDecision(
            answer=answer,
            sources=sources,
            actions=list(LOW_CONFIDENCE_ACTIONS),
            disclaimer=LOW_DISCLAIMER,
        )
