"""
Completion backend for the AI grading suggestion.

Everything that talks to the OpenAI SDK lives here. The rest of the
package sees only ``complete(prompt, temperature=..., max_tokens=...)``,
which returns the model's raw text.

Env vars:
- OPENAI_API_KEY (required for real calls)
- OPENAI_MODEL (default: gpt-4o)
"""

import logging
import os
from typing import Optional, Protocol

from openai import OpenAI

from canvas_grader.config import OPENAI_MODEL
from canvas_grader.errors import LLMError

logger = logging.getLogger(__name__)


class CompletionBackend(Protocol):
    def complete(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        ...


class OpenAICompletionBackend:
    """Single, non-streaming text completion through the OpenAI Responses API."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model or OPENAI_MODEL
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        # Built on first use so a missing key only fails the AI route
        if self._client is None:
            if not self.api_key:
                raise LLMError("Missing OPENAI_API_KEY (env var) or api_key parameter.")
            self._client = OpenAI(api_key=self.api_key, max_retries=0)
        return self._client

    def complete(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        if not prompt.strip():
            raise LLMError("prompt is empty.")
        try:
            resp = self.client.responses.create(
                model=self.model,
                input=prompt,
                temperature=temperature,
                max_output_tokens=max_tokens,
            )
        except LLMError:
            raise
        except Exception as e:
            raise LLMError(f"OpenAI API call failed: {e}") from e

        text = getattr(resp, "output_text", None)
        if text is None:
            raise LLMError("Model returned no output_text.")
        logger.info(f"AI grading completion received from {getattr(resp, 'model', None) or self.model}")
        return str(text)


_default_backend: Optional[OpenAICompletionBackend] = None


def get_completion_backend() -> CompletionBackend:
    """Dependency: the process-wide completion backend (overridden in tests)."""
    global _default_backend
    if _default_backend is None:
        _default_backend = OpenAICompletionBackend()
    return _default_backend
