import json
import logging
import re
from typing import Any, AsyncIterator

from openai import AsyncOpenAI

from rag_assistant.core.errors import GenerationError

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def parse_json_response(text: str) -> dict[str, Any]:
    """Parse a model answer that should be a JSON object.

    Markdown code fences around the object are tolerated.

    Raises:
        GenerationError: If the text is not a JSON object.
    """
    stripped = text.strip()
    match = _CODE_FENCE_RE.match(stripped)
    if match:
        stripped = match.group(1)

    try:
        data = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise GenerationError(f"Model did not return valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise GenerationError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class OpenAIChatClient:
    """LLM client for OpenAI-compatible APIs (Ollama by default)."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434/v1",
        api_key: str = "ollama",
        model: str = "qwen2.5:7b",
        max_tokens: int = 2048,
        temperature: float = 0.7,
        timeout: float = 120.0,
        client: AsyncOpenAI | None = None,
    ):
        """Initialize client.

        Args:
            base_url: API URL.
            api_key: API key ("ollama" for a local server).
            model: Model name.
            max_tokens: Max response tokens.
            temperature: Sampling temperature.
            timeout: Request timeout in seconds.
            client: Preconfigured AsyncOpenAI client.
        """
        self._client = client or AsyncOpenAI(base_url=base_url, api_key=api_key, timeout=timeout)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def complete(self, messages: list[dict[str, str]]) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except Exception as e:
            raise GenerationError(f"Chat completion failed: {e}") from e

        return response.choices[0].message.content or ""

    async def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        """Stream response tokens.

        Args:
            messages: Chat messages.

        Yields:
            Response tokens.
        """
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                stream=True,
            )
        except Exception as e:
            raise GenerationError(f"Chat stream failed: {e}") from e

        try:
            async for chunk in response:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        finally:
            await response.close()

    async def complete_json(self, prompt: str) -> dict[str, Any]:
        """Single-shot prompt whose answer is parsed as a JSON object.

        Raises:
            GenerationError: If the call fails or the answer is not JSON.
        """
        content = await self.complete([{"role": "user", "content": prompt}])
        return parse_json_response(content)
