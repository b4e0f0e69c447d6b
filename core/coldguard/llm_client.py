"""
Text generation client.

Thin wrapper over the OpenAI chat completions API. The classification core
never calls it; only the analysis and chat layers do, and they fall back to
canned text when it raises LLMError.
"""

import logging

from openai import OpenAI, OpenAIError

from .exceptions import LLMError

logger = logging.getLogger(__name__)


class LLMClient:
    """Generates free text from a prompt."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", timeout: float = 20.0):
        """Initialize LLM client.

        Args:
            api_key: OpenAI API key (empty disables the client)
            model: Chat model name
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = None

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not self.api_key:
                raise LLMError("OPENAI_API_KEY missing, text generation disabled")
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def generate_text(self, prompt: str, temperature: float = 0.3, max_tokens: int = 800) -> str:
        """Generate a completion for a single user prompt.

        Args:
            prompt: Full prompt text
            temperature: Sampling temperature
            max_tokens: Upper bound on generated tokens

        Returns:
            Generated text, stripped

        Raises:
            LLMError: If the client is disabled, the call fails, or the reply is empty
        """
        client = self._get_client()
        try:
            completion = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            raise LLMError(f"Text generation failed: {e}") from e

        if not completion.choices:
            raise LLMError("Text generation returned no choices")
        text = (completion.choices[0].message.content or "").strip()
        if not text:
            raise LLMError("Text generation returned an empty reply")

        logger.debug(f"LLM reply ({self.model}): {len(text)} chars")
        return text
