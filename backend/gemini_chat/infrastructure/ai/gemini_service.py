"""
Gemini AI Service for Gemini Chat

Thin wrapper over the google.genai SDK used by the generation worker:
one prompt in, generated text out, bounded by a timeout.
"""

import asyncio
import logging
from functools import lru_cache
from typing import Optional

from google import genai
from google.genai import types

from gemini_chat.config.settings import Settings, get_settings
from gemini_chat.infrastructure.exceptions import (
    ConfigurationError,
    GenerationError,
    GenerationTimeoutError,
)


logger = logging.getLogger(__name__)


class GeminiService:
    """
    Text generation through Gemini.

    The SDK call is blocking, so it runs in a worker thread and the await is
    bounded with ``asyncio.wait_for``.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
        client: Optional[genai.Client] = None,
    ):
        if client is None:
            if not api_key:
                raise ConfigurationError(
                    "Missing GOOGLE_API_KEY environment variable",
                    missing_keys=["GOOGLE_API_KEY"]
                )
            client = genai.Client(api_key=api_key)

        self._client = client
        self.model = model
        self._config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )

        logger.info(f"GeminiService initialized with model: {self.model}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiService":
        return cls(
            api_key=settings.google_api_key,
            model=settings.gemini_model,
            temperature=settings.generation_temperature,
            max_output_tokens=settings.generation_max_output_tokens,
        )

    async def generate_text(self, prompt: str, timeout_seconds: float) -> str:
        """
        Generate a reply for ``prompt``.

        Args:
            prompt: Full prompt including conversation history
            timeout_seconds: Upper bound on the API call

        Returns:
            Generated text

        Raises:
            GenerationTimeoutError: the call did not finish in time
            GenerationError: the API failed or returned no text
        """
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    lambda: self._client.models.generate_content(
                        model=self.model,
                        contents=prompt,
                        config=self._config,
                    )
                ),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise GenerationTimeoutError(
                timeout_seconds, model=self.model, original_error=e
            )
        except Exception as e:
            error_msg = str(e).lower()
            if "rate" in error_msg or "quota" in error_msg:
                message = "Gemini API rate limit exceeded"
            else:
                message = f"Failed to generate content: {str(e)}"
            raise GenerationError(
                message,
                model=self.model,
                operation="generate_content",
                original_error=e
            )

        text = response.text
        if not text:
            raise GenerationError(
                "Empty response from Gemini",
                model=self.model,
                operation="generate_content"
            )
        return text.strip()


@lru_cache
def get_gemini_service() -> GeminiService:
    """Process-wide GeminiService built from settings."""
    return GeminiService.from_settings(get_settings())
