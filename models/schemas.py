"""
Pydantic models for MisIntel data structures.

Wire format is camelCase (``isFake``, ``factCheckResults``...) to match the
web UI and browser extension; Python attributes stay snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Optional
from datetime import datetime, timezone
from enum import Enum


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class InputKind(str, Enum):
    """Kind of content submitted for analysis."""
    TEXT = "text"
    URL = "url"
    IMAGE = "image"
    AUDIO = "audio"


class AnalysisRequest(BaseModel):
    """An inbound analysis request. Exactly one payload matches ``kind``."""
    kind: InputKind = Field(description="Which payload is populated")
    body: Optional[str] = Field(default=None, description="Text to analyze")
    url: Optional[str] = Field(default=None, description="Absolute http(s) URL to analyze")
    force_fresh: bool = Field(default=False, description="Bypass the URL cache")
    image: Optional[bytes] = Field(default=None, description="Uploaded image bytes")
    audio: Optional[bytes] = Field(default=None, description="Uploaded audio bytes")
    audio_mime_type: Optional[str] = Field(default=None, description="MIME type of the audio upload")


class Review(CamelModel):
    """A single publisher's review of a claim."""
    publisher_name: str = "Unknown"
    textual_rating: str = ""
    url: str = ""


class ClaimReview(CamelModel):
    """A claim found in the fact-check database with its reviews."""
    claim_text: str = ""
    claimant: str = ""
    reviews: list[Review] = Field(default_factory=list)

    @property
    def first_review_url(self) -> str:
        return self.reviews[0].url if self.reviews else ""

    def rated_as(self, *terms: str) -> bool:
        """True if any review's rating mentions one of ``terms`` (case-insensitive)."""
        for review in self.reviews:
            rating = review.textual_rating.lower()
            if any(term in rating for term in terms):
                return True
        return False


class SearchHit(CamelModel):
    """Result from the web search API."""
    title: str = ""
    snippet: str = ""
    link: str = ""
    source: str = Field(default="", description="Display domain of the result")


class NewsHit(CamelModel):
    """Recent news article."""
    title: str = ""
    description: str = ""
    url: str = ""
    source: str = ""
    published_at: Optional[str] = None


class SafetyVerdict(CamelModel):
    """URL safety verdict. ``safe`` stays True when the lookup fails."""
    safe: bool = True
    threats: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def flagged(self) -> bool:
        return not self.safe and len(self.threats) > 0


class VerificationEvidence(BaseModel):
    """Everything gathered before AI analysis. Any part may be empty."""
    fact_check_claims: list[ClaimReview] = Field(default_factory=list)
    search_results: list[SearchHit] = Field(default_factory=list)
    news_articles: list[NewsHit] = Field(default_factory=list)
    safety: SafetyVerdict = Field(default_factory=SafetyVerdict)
    availability: dict[str, str] = Field(
        default_factory=dict, description="Lookup status per evidence source"
    )


class PriorArticle(CamelModel):
    title: str
    url: str
    date: str = "Recent"


class AuthorInfo(CamelModel):
    """Byline and credibility estimate for a URL."""
    name: str
    credibility_score: int = Field(ge=0, le=100)
    prior_articles: list[PriorArticle] = Field(default_factory=list)


class AnalysisResult(CamelModel):
    """Normalized analysis returned by ``/advanced-check``.

    ``confidence == 0`` means no analysis was produced.
    """
    is_fake: bool
    confidence: int = Field(ge=0, le=100)
    summary: str
    reasons: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    fact_check_results: list[ClaimReview] = Field(default_factory=list)
    safety_check: SafetyVerdict = Field(default_factory=SafetyVerdict)
    custom_search_results: list[SearchHit] = Field(default_factory=list)
    news_results: list[NewsHit] = Field(default_factory=list)
    author: Optional[AuthorInfo] = None
    input_text: Optional[str] = None
    input_url: Optional[str] = None
    extracted_text: Optional[str] = None
    error: Optional[str] = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    from_cache: bool = False
    cached_at: Optional[str] = None


class RateLimitDecision(BaseModel):
    limited: bool
    retry_after: int = 0


class TranscriptWord(CamelModel):
    word: str
    start_time: float = 0.0
    end_time: float = 0.0
    confidence: float = 0.0


class SpeechTranscript(CamelModel):
    """Speech-to-Text output."""
    transcript: str = ""
    confidence: float = 0.0
    language: str = "en-US"
    words: list[TranscriptWord] = Field(default_factory=list)
    audio_length: int = 0
