"""
NewsAPI tool for MisIntel.
Search the last week of news for context on a claim.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from tools.base import BaseTool, Lookup
from models.schemas import NewsHit
from config import Settings, get_settings, TRUNCATION, API_TIMEOUTS

logger = logging.getLogger(__name__)


class NewsAPITool(BaseTool):
    """NewsAPI ``/v2/everything`` search over recent articles."""

    name = "newsapi"
    description = "Search recent news articles from 80,000+ sources for fact-checking context"

    BASE_URL = "https://newsapi.org/v2/everything"
    LOOKBACK_DAYS = 7

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def is_available(self) -> bool:
        return self.settings.has_news

    async def lookup(
        self,
        query: str,
        max_results: int = 10,
        now: Optional[datetime] = None,
    ) -> Lookup[list[NewsHit]]:
        """
        Search English articles from the last 7 days, newest first.

        Args:
            query: Search query; truncated to 100 characters
            max_results: Page size
            now: Reference time for the date window (defaults to the current UTC time)
        """
        if not self.is_available:
            logger.warning("NewsAPI key not configured")
            return Lookup.not_configured([])

        now = now or datetime.now(timezone.utc)
        from_date = (now - timedelta(days=self.LOOKBACK_DAYS)).date().isoformat()

        params = {
            "apiKey": self.settings.news_api_key,
            "q": query[:TRUNCATION.NEWS_QUERY],
            "from": from_date,
            "sortBy": "publishedAt",
            "language": "en",
            "pageSize": max_results,
        }

        try:
            async with httpx.AsyncClient(timeout=API_TIMEOUTS.EVIDENCE) as client:
                response = await client.get(self.BASE_URL, params=params)
            if response.status_code >= 400:
                logger.warning("NewsAPI failed: %s", response.status_code)
                return Lookup.unavailable([])
            data = response.json()
            if data.get("status", "ok") != "ok":
                logger.warning("NewsAPI error: %s", data.get("message", "Unknown error"))
                return Lookup.unavailable([])
            articles = [
                NewsHit(
                    title=article.get("title") or "",
                    description=article.get("description") or (article.get("content") or "")[:500],
                    url=article.get("url") or "",
                    source=(article.get("source") or {}).get("name") or "Unknown",
                    published_at=article.get("publishedAt"),
                )
                for article in data.get("articles", []) or []
            ]
        except Exception as e:
            logger.warning("NewsAPI error: %s", e)
            return Lookup.unavailable([])

        logger.info("News results: %d articles found", len(articles))
        return Lookup.ok(articles)
