"""Chat service - coordinates retrieval, generation and verification."""

import asyncio
import logging
import time
from typing import AsyncIterator, Optional

from ..models.chat import AssistantReply, Classification, ConversationTurn, StreamEvent
from ..models.document import RetrievedContext
from ..models.verification import VerificationResult
from ..verification import (
    ConfidenceScorer,
    FallbackPolicy,
    PassThroughVerifier,
    Verifier,
    verify_safely,
)
from .generation_service import GenerationService
from .rag_service import RAGService

logger = logging.getLogger(__name__)


class ChatService:
    """Assistant pipeline: retrieve, classify, generate, verify, score, fall back."""

    def __init__(
        self,
        rag: RAGService,
        generator: GenerationService,
        verifier: Optional[Verifier] = None,
        scorer: Optional[ConfidenceScorer] = None,
        fallback: Optional[FallbackPolicy] = None,
        top_k: int = 5,
    ):
        """Initialize chat service.

        Args:
            rag: Retrieval facade.
            generator: Generation orchestrator.
            verifier: Answer verifier.
            scorer: Confidence scorer.
            fallback: Low-confidence policy.
            top_k: Documents retrieved per question.
        """
        self._rag = rag
        self._generator = generator
        self._verifier = verifier or PassThroughVerifier()
        self._scorer = scorer or ConfidenceScorer()
        self._fallback = fallback or FallbackPolicy()
        self._top_k = top_k

    async def _retrieve(self, message: str) -> Optional[RetrievedContext]:
        """Retrieve context; a retrieval failure means answering without documents."""
        try:
            return await self._rag.retrieve_context(message, self._top_k)
        except Exception as e:
            logger.warning(f"Error retrieving context: {e}")
            return None

    async def answer(
        self, message: str, history: Optional[list[ConversationTurn]] = None
    ) -> AssistantReply:
        """Answer a question in batch mode.

        Args:
            message: User question.
            history: Prior turns, oldest first.

        Returns:
            Answer with sources, confidence and fallback guidance.

        Raises:
            GenerationError: If the model call fails.
        """
        start = time.monotonic()
        context = await self._retrieve(message)

        classified = await self._generator.classify_question(message)
        classification = classified.value_or(Classification.general())

        result = await self._generator.generate_response(
            message,
            conversation_history=history or [],
            retrieved_context=context,
            streaming=False,
        )

        sources = context.sources if context else []
        verified = await verify_safely(
            self._verifier, message, result.content, context.context if context else ""
        )
        verification = verified.value_or(VerificationResult.unverified())

        confidence = self._scorer.calculate(
            retrieved_docs=sources,
            verification=verification,
            question_category=classification.category,
        )
        decision = self._fallback.decide(result.content, confidence, sources)

        logger.info(
            f"Answered '{message[:50]}' with confidence {confidence.score:.2f} "
            f"({confidence.level.value})"
        )

        return AssistantReply(
            answer=decision.answer,
            sources=decision.sources,
            confidence=confidence.score,
            level=confidence.level.value,
            category=classification.category,
            disclaimer=decision.disclaimer,
            actions=[a.to_dict() for a in decision.actions],
            metadata={
                **result.metadata.to_dict(),
                "verification": {
                    "is_verified": verification.is_verified,
                    "has_hallucination": verification.has_hallucination,
                    "confidence": verification.confidence,
                },
                "context": context.metadata if context else None,
                "total_time_ms": int((time.monotonic() - start) * 1000),
            },
        )

    async def stream(
        self,
        message: str,
        history: Optional[list[ConversationTurn]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[StreamEvent]:
        """Answer a question as a stream of events.

        Yields:
            Chunk events, then one done or error event.
        """
        context = await self._retrieve(message)
        events = await self._generator.generate_response(
            message,
            conversation_history=history or [],
            retrieved_context=context,
            streaming=True,
            cancel_event=cancel_event,
        )
        try:
            async for event in events:
                yield event
        finally:
            await events.aclose()
