"""MisIntel configuration."""

from .settings import Settings, get_settings
from .constants import (
    TRUNCATION,
    CACHE_TTLS,
    API_TIMEOUTS,
    ANALYSIS_DEFAULTS,
    BOT_USER_AGENT,
    CACHE_KEY_PREFIX,
)

__all__ = [
    "Settings",
    "get_settings",
    "TRUNCATION",
    "CACHE_TTLS",
    "API_TIMEOUTS",
    "ANALYSIS_DEFAULTS",
    "BOT_USER_AGENT",
    "CACHE_KEY_PREFIX",
]
