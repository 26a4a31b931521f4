from dataclasses import dataclass


@dataclass(frozen=True)
class TruncationLimits:
    """Character and item limits applied before text leaves the service."""
    FACT_CHECK_QUERY: int = 500
    SEARCH_QUERY: int = 200
    NEWS_QUERY: int = 100
    PROMPT_CONTENT: int = 1500
    EXTRACTED_CONTENT: int = 2000
    AUTHOR_TEXT_SCAN: int = 5000
    PROMPT_EVIDENCE_ITEMS: int = 5
    RESULT_EVIDENCE_ITEMS: int = 3


@dataclass(frozen=True)
class CacheTTLs:
    BASE: int = 60 * 60 * 24
    LOW_CONFIDENCE: int = 60 * 60 * 12
    HIGH_CONFIDENCE: int = 60 * 60 * 24 * 14
    UNSAFE: int = 60 * 60 * 6

    LOW_CONFIDENCE_BELOW: int = 70
    HIGH_CONFIDENCE_FROM: int = 90


@dataclass(frozen=True)
class APITimeouts:
    """Timeout configurations for external API calls."""
    EVIDENCE: float = 15.0
    URL_FETCH: float = 15.0
    AUTHOR_FETCH: float = 10.0
    SPEECH: float = 60.0
    LLM: float = 60.0


@dataclass(frozen=True)
class AnalysisDefaults:
    MIN_CONFIDENCE: int = 60
    MAX_CONFIDENCE: int = 95
    DEFAULT_CONFIDENCE: int = 75
    FALLBACK_CONFIDENCE: int = 75
    UNSAFE_MIN_CONFIDENCE: int = 85
    MAX_SOURCES: int = 6
    REFERENCE_SOURCES: tuple = ("https://www.factcheck.org", "https://www.snopes.com")


TRUNCATION = TruncationLimits()
CACHE_TTLS = CacheTTLs()
API_TIMEOUTS = APITimeouts()
ANALYSIS_DEFAULTS = AnalysisDefaults()

BOT_USER_AGENT = "MisIntel-Bot/1.0"
CACHE_KEY_PREFIX = "misintel:url:"
