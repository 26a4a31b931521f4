"""MisIntel services."""

from .rate_limiter import SlidingWindowRateLimiter, client_id_from_headers
from .analysis_cache import (
    AnalysisCache,
    MemoryAnalysisCache,
    DiskAnalysisCache,
    choose_ttl,
    normalize_url,
    get_analysis_cache,
)
from .reliability import domain_reputation, extract_domain
from .author import AuthorExtractor, credibility_score

__all__ = [
    "SlidingWindowRateLimiter",
    "client_id_from_headers",
    "AnalysisCache",
    "MemoryAnalysisCache",
    "DiskAnalysisCache",
    "choose_ttl",
    "normalize_url",
    "get_analysis_cache",
    "domain_reputation",
    "extract_domain",
    "AuthorExtractor",
    "credibility_score",
]
