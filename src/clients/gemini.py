"""Gemini client for recipe enrichment.

Sends one EnrichmentRequest to the generative model and returns the raw text.
Parsing and repair of that text is the pipeline's job; this module only
guarantees "text or EnrichmentCallError".
"""

import asyncio
from typing import Any

from google import genai
from google.genai import types

from src.exceptions.recipe_exceptions import EnrichmentCallError
from src.models.models import EnrichmentRequest
from src.utils.logger import logger


def collect_response_text(response: Any) -> str:
    """Concatenate text parts of the first candidate, in order.

    Non-text parts (function calls, inline data) and thought summaries are skipped.
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []

    chunks = []
    for part in parts:
        text = getattr(part, "text", None)
        if not isinstance(text, str) or getattr(part, "thought", False):
            continue
        chunks.append(text)
    return "".join(chunks)


class GeminiEnrichmentClient:
    """Thin async wrapper around google-genai generate_content."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_output_tokens: int = 4096,
        temperature: float = 0.4,
        timeout: float = 45.0,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Gemini API key.
            model: Model id, e.g. "gemini-2.5-flash".
            max_output_tokens: Token budget for the answer.
            temperature: Sampling temperature (0.0-1.0).
            timeout: Seconds before the call is abandoned.

        Raises:
            ValueError: If api_key or model is empty.
        """
        if not api_key:
            raise ValueError("GEMINI_API_KEY is required")
        if not model:
            raise ValueError("GEMINI_MODEL is required")

        self.api_key = api_key
        self.model = model
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._client = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate(self, request: EnrichmentRequest) -> str:
        """Run one enrichment call.

        Args:
            request: Prompt and system instruction.

        Returns:
            Concatenated response text (never empty).

        Raises:
            EnrichmentCallError: On API errors, timeouts, or an empty answer.
        """
        generation_config = types.GenerateContentConfig(
            system_instruction=request.system_instruction,
            max_output_tokens=self.max_output_tokens,
            temperature=self.temperature,
            response_mime_type="application/json",
        )

        try:
            # Sync SDK call runs in a worker thread to keep the event loop free
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self._get_client().models.generate_content,
                    model=self.model,
                    contents=request.prompt,
                    config=generation_config,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise EnrichmentCallError(f"Gemini call timed out after {self.timeout}s") from e
        except Exception as e:
            raise EnrichmentCallError(f"Gemini call failed: {e}") from e

        text = collect_response_text(response)
        if not text.strip():
            finish_reason = None
            candidates = getattr(response, "candidates", None) or []
            if candidates:
                finish_reason = getattr(candidates[0], "finish_reason", None)
            raise EnrichmentCallError(f"Gemini returned no text (finish_reason={finish_reason})")

        logger.debug(f"Gemini returned {len(text)} chars")
        return text
