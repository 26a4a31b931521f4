"""Data models for MisIntel."""

from .schemas import (
    AnalysisRequest,
    AnalysisResult,
    AuthorInfo,
    ClaimReview,
    InputKind,
    NewsHit,
    PriorArticle,
    RateLimitDecision,
    Review,
    SafetyVerdict,
    SearchHit,
    SpeechTranscript,
    TranscriptWord,
    VerificationEvidence,
)

__all__ = [
    "AnalysisRequest",
    "AnalysisResult",
    "AuthorInfo",
    "ClaimReview",
    "InputKind",
    "NewsHit",
    "PriorArticle",
    "RateLimitDecision",
    "Review",
    "SafetyVerdict",
    "SearchHit",
    "SpeechTranscript",
    "TranscriptWord",
    "VerificationEvidence",
]
