"""LLM protocol for dependency injection."""
from typing import Any, AsyncIterator, Protocol, runtime_checkable


@runtime_checkable
class LLMProtocol(Protocol):
    """Protocol for LLM client."""

    async def complete(self, messages: list[dict[str, str]]) -> str:
        """Return the full response for a turn sequence.

        Args:
            messages: Ordered chat messages (role, content).

        Returns:
            Response text.
        """
        ...

    def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        """Stream the response for a turn sequence.

        Closing the iterator releases the model connection.

        Args:
            messages: Ordered chat messages (role, content).

        Yields:
            Response text fragments.
        """
        ...

    async def complete_json(self, prompt: str) -> dict[str, Any]:
        """Single-shot call that must answer with a JSON object.

        Args:
            prompt: Full prompt.

        Returns:
            Parsed JSON object.
        """
        ...
