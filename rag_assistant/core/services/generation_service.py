"""Generation service - builds the model conversation and runs it."""

import asyncio
import logging
import time
from typing import AsyncIterator, Optional, Union

from ..models.chat import (
    Classification,
    ConversationTurn,
    GenerationMetadata,
    GenerationResult,
    StreamEvent,
)
from ..models.document import RetrievedContext
from ..models.outcome import Outcome
from ..prompts import ACKNOWLEDGEMENT, build_classification_prompt, build_system_prompt
from ..protocols.llm import LLMProtocol
from ..tokens import estimate_tokens
from .conversation_context import ConversationContextManager

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class GenerationService:
    """Drives the generative model in batch or streaming mode."""

    def __init__(
        self,
        llm: LLMProtocol,
        context_manager: Optional[ConversationContextManager] = None,
        acknowledge_system_prompt: bool = True,
        product_name: str = "EstoqueUni",
    ):
        """Initialize generation service.

        Args:
            llm: LLM client.
            context_manager: History budgeting.
            acknowledge_system_prompt: Send the system prompt as a user turn
                followed by an assistant acknowledgement.
            product_name: Product named in the prompts.
        """
        self._llm = llm
        self._context_manager = context_manager or ConversationContextManager()
        self._acknowledge = acknowledge_system_prompt
        self._product_name = product_name

    def build_messages(
        self,
        user_message: str,
        conversation_history: list[ConversationTurn],
        retrieved_context: Optional[RetrievedContext] = None,
    ) -> list[dict[str, str]]:
        """Assemble prompt, budgeted history and the new message."""
        system_prompt = build_system_prompt(retrieved_context, self._product_name)
        history = self._context_manager.manage_history(
            conversation_history, system_prompt, user_message
        )

        if self._acknowledge:
            messages = [
                {"role": "user", "content": system_prompt},
                {"role": "assistant", "content": ACKNOWLEDGEMENT},
            ]
        else:
            messages = [{"role": "system", "content": system_prompt}]

        messages.extend(turn.to_message() for turn in history)
        messages.append({"role": "user", "content": user_message})
        return messages

    async def generate_response(
        self,
        user_message: str,
        conversation_history: Optional[list[ConversationTurn]] = None,
        retrieved_context: Optional[RetrievedContext] = None,
        streaming: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Union[GenerationResult, AsyncIterator[StreamEvent]]:
        """Generate an answer.

        Args:
            user_message: New user message.
            conversation_history: Prior turns, oldest first.
            retrieved_context: Documentation context for the system prompt.
            streaming: Return a stream of events instead of a result.
            cancel_event: Stops a stream when set.

        Returns:
            GenerationResult, or an async iterator of StreamEvent when streaming.

        Raises:
            GenerationError: If a batch call fails.
        """
        messages = self.build_messages(
            user_message, conversation_history or [], retrieved_context
        )
        start = time.monotonic()

        if streaming:
            return self.stream_response(messages, start, cancel_event)

        try:
            content = await self._llm.complete(messages)
        except Exception as e:
            logger.error(f"Error generating response: {e}")
            raise

        return GenerationResult(
            content=content,
            metadata=GenerationMetadata(
                processing_time_ms=_elapsed_ms(start),
                tokens_used=estimate_tokens(content),
            ),
        )

    async def stream_response(
        self,
        messages: list[dict[str, str]],
        start: float,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[StreamEvent]:
        """Yield chunk events, then exactly one done or error event.

        Closing this generator closes the model stream.
        """
        stream = self._llm.stream(messages)
        parts: list[str] = []
        try:
            async for text in stream:
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Stream cancelled by caller")
                    yield StreamEvent.failed(CANCELLED)
                    return
                parts.append(text)
                yield StreamEvent.chunk(text)

            if cancel_event is not None and cancel_event.is_set():
                yield StreamEvent.failed(CANCELLED)
                return

            full_content = "".join(parts)
            yield StreamEvent.done(
                GenerationMetadata(
                    processing_time_ms=_elapsed_ms(start),
                    tokens_used=estimate_tokens(full_content),
                    full_content=full_content,
                )
            )
        except Exception as e:
            logger.error(f"Error streaming response: {e}")
            yield StreamEvent.failed(str(e))
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    async def classify_question(self, question: str) -> Outcome[Classification]:
        """Classify a question as product-related or general.

        Returns:
            The classification, or a failure the caller replaces with
            ``Classification.general()``.
        """
        try:
            data = await self._llm.complete_json(
                build_classification_prompt(question, self._product_name)
            )
            return Outcome.success(Classification.from_dict(data))
        except Exception as e:
            logger.error(f"Error classifying question: {e}")
            return Outcome.failure(e)
