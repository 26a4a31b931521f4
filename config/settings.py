"""
MisIntel Configuration Settings
Loads environment variables and provides typed configuration.
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Literal
from functools import lru_cache


def _is_configured(value: str) -> bool:
    return bool(value) and not (value.startswith("your_") and value.endswith("_here"))


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # LLM
    gemini_api_key: str = Field(default="", alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")

    # Verification API keys
    fact_check_api_key: str = Field(default="", alias="FACT_CHECK_API_KEY")
    custom_search_api_key: str = Field(default="", alias="CUSTOM_SEARCH_API_KEY")
    custom_search_engine_id: str = Field(default="", alias="CUSTOM_SEARCH_ENGINE_ID")
    safe_browsing_api_key: str = Field(default="", alias="SAFE_BROWSING_API_KEY")
    news_api_key: str = Field(default="", alias="NEWS_API_KEY")
    google_cloud_api_key: str = Field(default="", alias="GOOGLE_CLOUD_API_KEY")

    # Rate limiting
    rate_limit_window_seconds: float = Field(default=60.0, alias="RATE_LIMIT_WINDOW_SECONDS")
    rate_limit_max_requests: int = Field(default=6, alias="RATE_LIMIT_MAX_REQUESTS")

    # Analysis cache
    cache_enabled: bool = Field(default=True, alias="CACHE_ENABLED")
    cache_backend: Literal["memory", "disk"] = Field(default="memory", alias="CACHE_BACKEND")
    cache_dir: str = Field(default="data/cache/analysis", alias="CACHE_DIR")
    cache_base_ttl_seconds: int = Field(default=60 * 60 * 24, alias="CACHE_BASE_TTL_SECONDS")

    # Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True

    @property
    def has_gemini(self) -> bool:
        """Check if Gemini API key is configured."""
        return _is_configured(self.gemini_api_key)

    @property
    def has_fact_check(self) -> bool:
        return _is_configured(self.fact_check_api_key)

    @property
    def has_custom_search(self) -> bool:
        """Custom Search needs both the key and the engine id."""
        return _is_configured(self.custom_search_api_key) and _is_configured(self.custom_search_engine_id)

    @property
    def has_safe_browsing(self) -> bool:
        return _is_configured(self.safe_browsing_api_key)

    @property
    def has_news(self) -> bool:
        return _is_configured(self.news_api_key)

    @property
    def speech_api_key(self) -> str:
        """Speech-to-Text key, falling back to the Gemini key like the web app does."""
        if _is_configured(self.google_cloud_api_key):
            return self.google_cloud_api_key
        return self.gemini_api_key if self.has_gemini else ""

    @property
    def has_speech(self) -> bool:
        return bool(self.speech_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
