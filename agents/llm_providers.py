"""
LLM providers for MisIntel.
Supports Google Gemini.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from config import Settings, get_settings, API_TIMEOUTS
from exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers."""

    name: str = "base"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 2048,
    ) -> str:
        """Generate text from a prompt."""
        pass

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is configured."""
        pass


class GeminiProvider(BaseLLMProvider):
    """Google Gemini LLM provider."""

    name = "gemini"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._client = None

    @property
    def is_available(self) -> bool:
        return self.settings.has_gemini

    @property
    def model_name(self) -> str:
        return self.settings.gemini_model

    def _get_client(self):
        if self._client is None:
            import google.generativeai as genai
            genai.configure(api_key=self.settings.gemini_api_key)
            self._client = genai.GenerativeModel(self.model_name)
        return self._client

    async def generate(
        self,
        prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 2048,
    ) -> str:
        """
        Generate text using Gemini.

        Raises:
            ConfigurationError: if no API key is set
            RuntimeError: on any model or transport failure
        """
        if not self.is_available:
            raise ConfigurationError("GEMINI_API_KEY")

        client = self._get_client()
        try:
            response = await asyncio.wait_for(
                client.generate_content_async(
                    prompt,
                    generation_config={
                        "temperature": temperature,
                        "max_output_tokens": max_tokens,
                    },
                ),
                timeout=API_TIMEOUTS.LLM,
            )
            text = response.text
        except Exception as e:
            raise RuntimeError(f"Gemini generation error: {e}") from e

        logger.info("Gemini response received, length: %d", len(text))
        return text
