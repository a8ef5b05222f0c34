"""Conversation context - trims chat history to a token budget."""

import logging

from ..models.chat import ConversationTurn
from ..tokens import estimate_tokens

logger = logging.getLogger(__name__)


class ConversationContextManager:
    """Keeps the most recent history that fits next to the prompt."""

    def __init__(self, max_tokens: int = 8000, reserve_tokens: int = 500):
        """Initialize manager.

        Args:
            max_tokens: Total budget for system prompt, history and message.
            reserve_tokens: Tokens kept free for the response.
        """
        self._max_tokens = max_tokens
        self._reserve_tokens = reserve_tokens

    def available_tokens(self, system_prompt: str, current_message: str) -> int:
        return (
            self._max_tokens
            - estimate_tokens(system_prompt)
            - estimate_tokens(current_message)
            - self._reserve_tokens
        )

    def manage_history(
        self,
        history: list[ConversationTurn],
        system_prompt: str,
        current_message: str,
    ) -> list[ConversationTurn]:
        """Select the newest contiguous run of history that fits.

        Walks from the newest turn backwards and stops at the first turn that
        would overflow; that turn and everything older is dropped.

        Args:
            history: Prior turns, oldest first.
            system_prompt: System prompt for this request.
            current_message: New user message.

        Returns:
            Kept turns, oldest first.
        """
        available = self.available_tokens(system_prompt, current_message)
        kept: list[ConversationTurn] = []

        for index in range(len(history) - 1, -1, -1):
            turn_tokens = estimate_tokens(history[index].content)
            if available - turn_tokens < 0:
                logger.info(f"Trimmed {index + 1} oldest messages from history")
                break
            kept.append(history[index])
            available -= turn_tokens

        kept.reverse()
        return kept

    @staticmethod
    def summarize_dropped(turns: list[ConversationTurn]) -> ConversationTurn:
        """Placeholder turn standing in for omitted history."""
        return ConversationTurn(
            role="system",
            content=f"[Resumo da conversa anterior: {len(turns)} mensagens]",
        )
