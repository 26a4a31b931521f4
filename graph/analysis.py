"""
Model-output parsing, normalization and rule-based fallbacks.

The model is asked for a JSON verdict; everything here turns whatever it
returns (or fails to return) into an AnalysisResult.
"""

import json
import math
import re
from typing import Any

from models.schemas import AnalysisResult, VerificationEvidence, SafetyVerdict
from exceptions import ModelResponseError
from config import ANALYSIS_DEFAULTS, TRUNCATION

DEFAULT_SUMMARY = "Multi-source analysis completed"
DEFAULT_REASONS = ["Analysis completed using multiple verification sources"]
UNSAFE_URL_REASON = "URL flagged as potentially unsafe by security systems"

SENSATIONAL_RE = re.compile(
    r"shocking|unbelievable|doctors hate|miracle|secret|breaking|urgent|click here"
    r"|you won't believe|this will amaze",
    re.IGNORECASE,
)

_FENCE_RE = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Pull the JSON object out of free-form model output.

    Strips a markdown code fence if present, then keeps the span from the
    first ``{`` to the last ``}``.

    Raises:
        ModelResponseError: if no JSON object can be parsed
    """
    candidate = (text or "").strip()
    if "```" in candidate:
        match = _FENCE_RE.search(candidate)
        if match:
            candidate = match.group(1)

    start = candidate.find("{")
    end = candidate.rfind("}") + 1
    if start != -1 and end > start:
        candidate = candidate[start:end]

    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, ValueError) as e:
        raise ModelResponseError(str(e), raw_text=text or "") from e
    if not isinstance(parsed, dict):
        raise ModelResponseError("expected a JSON object", raw_text=text or "")
    return parsed


def coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return bool(value)


def clamp_confidence(value: Any) -> int:
    """Model confidence forced into [60, 95]; missing or non-numeric becomes 75."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = 0.0
    if math.isnan(number) or number == 0:
        number = ANALYSIS_DEFAULTS.DEFAULT_CONFIDENCE
    number = min(ANALYSIS_DEFAULTS.MAX_CONFIDENCE, max(ANALYSIS_DEFAULTS.MIN_CONFIDENCE, number))
    return int(round(number))


def _dedupe(urls: list[str]) -> list[str]:
    seen: list[str] = []
    for url in urls:
        if url and url not in seen:
            seen.append(url)
    return seen


def derive_sources(evidence: VerificationEvidence) -> list[str]:
    """Top evidence URLs plus the reference fact-checkers, deduplicated, at most 6."""
    urls = (
        [a.url for a in evidence.news_articles[:2]]
        + [c.first_review_url for c in evidence.fact_check_claims[:2]]
        + [h.link for h in evidence.search_results[:2]]
        + list(ANALYSIS_DEFAULTS.REFERENCE_SOURCES)
    )
    return _dedupe(urls)[: ANALYSIS_DEFAULTS.MAX_SOURCES]


def _evidence_fields(evidence: VerificationEvidence) -> dict[str, Any]:
    limit = TRUNCATION.RESULT_EVIDENCE_ITEMS
    return {
        "fact_check_results": evidence.fact_check_claims[:limit],
        "safety_check": evidence.safety,
        "custom_search_results": evidence.search_results[:limit],
        "news_results": evidence.news_articles[:limit],
    }


def apply_safety_override(result: AnalysisResult, safety: SafetyVerdict) -> AnalysisResult:
    """A flagged URL is always reported fake with confidence of at least 85."""
    if not safety.flagged:
        return result
    if not result.reasons or result.reasons[0] != UNSAFE_URL_REASON:
        result.reasons.insert(0, UNSAFE_URL_REASON)
    result.is_fake = True
    result.confidence = max(result.confidence, ANALYSIS_DEFAULTS.UNSAFE_MIN_CONFIDENCE)
    return result


def normalize_model_output(parsed: dict[str, Any], evidence: VerificationEvidence) -> AnalysisResult:
    """Coerce a parsed model verdict into the result shape, then apply the safety override."""
    reasons = parsed.get("reasons")
    reasons = [str(r) for r in reasons] if isinstance(reasons, list) else list(DEFAULT_REASONS)

    sources = parsed.get("sources")
    if isinstance(sources, list) and sources:
        sources = _dedupe([str(s) for s in sources])[: ANALYSIS_DEFAULTS.MAX_SOURCES]
    else:
        sources = derive_sources(evidence)

    result = AnalysisResult(
        is_fake=coerce_bool(parsed.get("isFake")),
        confidence=clamp_confidence(parsed.get("confidence")),
        summary=str(parsed.get("summary") or DEFAULT_SUMMARY),
        reasons=reasons,
        sources=sources,
        **_evidence_fields(evidence),
    )
    return apply_safety_override(result, evidence.safety)


def has_negative_fact_check(evidence: VerificationEvidence, *terms: str) -> bool:
    return any(claim.rated_as(*terms) for claim in evidence.fact_check_claims)


def fallback_analysis(content: str, evidence: VerificationEvidence) -> AnalysisResult:
    """Rule-based verdict used when the model call or its JSON fails."""
    negative = has_negative_fact_check(evidence, "false", "misleading")
    sensational = SENSATIONAL_RE.search(content or "") is not None
    unsafe = not evidence.safety.safe
    is_fake = negative or sensational or unsafe

    reasons = []
    if negative:
        reasons.append("Similar claims fact-checked as false or misleading")
    if sensational:
        reasons.append("Contains typical misinformation language patterns")
    if unsafe:
        reasons.append("URL flagged by security systems")
    if not is_fake:
        reasons += ["No obvious red flags detected", "Multiple verification sources consulted"]

    sources = [c.first_review_url for c in evidence.fact_check_claims[:2] if c.first_review_url]
    sources.append(ANALYSIS_DEFAULTS.REFERENCE_SOURCES[0])

    return AnalysisResult(
        is_fake=is_fake,
        confidence=ANALYSIS_DEFAULTS.FALLBACK_CONFIDENCE,
        summary=(
            "Content flagged by multiple verification systems as potentially misleading"
            if is_fake
            else "Content passed basic verification checks across multiple sources"
        ),
        reasons=reasons,
        sources=sources[:3],
        **_evidence_fields(evidence),
    )


def partial_failure_result(evidence: VerificationEvidence) -> AnalysisResult:
    """Last-resort response: raw evidence with a minimal verdict."""
    negative = has_negative_fact_check(evidence, "false")
    unsafe = not evidence.safety.safe
    flagged = negative or unsafe

    if negative:
        summary = "Fact-checking databases found similar false claims"
    elif unsafe:
        summary = "URL flagged as unsafe"
    else:
        summary = "Basic verification completed, AI analysis unavailable"

    reasons = []
    if negative:
        reasons.append("Similar claims previously debunked")
    if unsafe:
        reasons.append("URL security concerns")
    reasons.append("AI analysis service temporarily unavailable")

    return AnalysisResult(
        error="AI Analysis partially failed",
        is_fake=flagged,
        confidence=70 if flagged else 60,
        summary=summary,
        reasons=reasons,
        **_evidence_fields(evidence),
    )
