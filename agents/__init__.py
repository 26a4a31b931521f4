"""Agents for MisIntel."""

from .llm_providers import (
    BaseLLMProvider,
    GeminiProvider,
)

__all__ = [
    "BaseLLMProvider",
    "GeminiProvider",
]
