"""
Prompts for MisIntel analysis.
"""

import json
from datetime import datetime, timezone
from typing import Optional

from models.schemas import ClaimReview, SearchHit, NewsHit, SafetyVerdict
from config import TRUNCATION

ANALYSIS_PROMPT = """You are an expert fact-checker analyzing content for misinformation.

CRITICAL: TODAY'S DATE AND TIME
Current Date: {today}
ISO Timestamp: {timestamp}
**IMPORTANT: Any article dated AFTER this timestamp is from the FUTURE and is speculative/prediction, NOT a confirmed fact. Any article dated BEFORE this timestamp is from the PAST and may be confirmed news.**

CONTENT TO ANALYZE:
"{content}"

RECENT NEWS ARTICLES (Last 7 days):
{news}

FACT-CHECK DATABASE RESULTS:
{fact_checks}

SEARCH VERIFICATION RESULTS:
{search}

URL SAFETY CHECK:
{safety}

ANALYSIS INSTRUCTIONS:
1. **ALWAYS compare article dates with today's date ({today}) to determine if they are past events or future predictions**
2. Prioritize recent news articles from reputable sources (within last 48 hours)
3. Cross-reference with fact-check database results
4. Evaluate source credibility from search results
5. Consider URL safety if applicable
6. Look for common misinformation patterns: sensational headlines, lack of sources, emotional manipulation, conspiracy theories
7. If recent news from 2+ trusted sources confirms a claim, increase confidence
8. **If articles are dated in the future (after {today}), they are SPECULATIVE, not factual**
9. Provide reasoning based on evidence from all sources

Return ONLY a valid JSON response with no additional text:

{{
  "isFake": boolean (true if likely misinformation),
  "confidence": number (60-95, based on evidence strength),
  "summary": "Comprehensive analysis summary in 2-3 sentences",
  "reasons": ["Specific reason 1", "Specific reason 2", "Specific reason 3"],
  "sources": ["Source URL 1", "Source URL 2"] (from fact-check, news, or search results)
}}"""


def summarize_fact_checks(claims: list[ClaimReview]) -> list[dict]:
    return [
        {
            "claim": claim.claim_text,
            "claimant": claim.claimant,
            "reviewers": [
                {"publisher": r.publisher_name, "rating": r.textual_rating, "url": r.url}
                for r in claim.reviews
            ],
        }
        for claim in claims
    ]


def summarize_search(hits: list[SearchHit]) -> list[dict]:
    return [
        {"title": h.title, "snippet": h.snippet, "link": h.link, "source": h.source}
        for h in hits
    ]


def summarize_news(articles: list[NewsHit]) -> list[dict]:
    return [
        {
            "title": a.title,
            "description": a.description,
            "url": a.url,
            "source": a.source,
            "publishedAt": a.published_at,
        }
        for a in articles
    ]


def _section(items: list[dict], empty: str) -> str:
    if not items:
        return empty
    return json.dumps(items[: TRUNCATION.PROMPT_EVIDENCE_ITEMS], indent=2, ensure_ascii=False)


def build_analysis_prompt(
    content: str,
    fact_checks: list[ClaimReview],
    search_results: list[SearchHit],
    news_articles: list[NewsHit],
    safety: SafetyVerdict,
    url: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Assemble the analysis prompt.

    Content is cut to 1500 characters and each evidence list to 5 items.
    """
    now = now or datetime.now(timezone.utc)
    if url:
        safety_line = f"URL: {url} - Safety Status: {'Safe' if safety.safe else 'Potentially Unsafe'}"
    else:
        safety_line = "No URL provided"

    return ANALYSIS_PROMPT.format(
        today=now.strftime("%A, %B %d, %Y").replace(" 0", " "),
        timestamp=now.isoformat(),
        content=content[: TRUNCATION.PROMPT_CONTENT],
        news=_section(summarize_news(news_articles), "No recent news articles found"),
        fact_checks=_section(summarize_fact_checks(fact_checks), "No direct fact-check matches found"),
        search=_section(summarize_search(search_results), "No verification sources found"),
        safety=safety_line,
    )
