"""
Google Custom Search tool for MisIntel.
Web search used both for verification context and for author lookups.
"""

import logging
from typing import Optional

import httpx

from tools.base import BaseTool, Lookup
from models.schemas import SearchHit
from config import Settings, get_settings, TRUNCATION, API_TIMEOUTS

logger = logging.getLogger(__name__)


class CustomSearchTool(BaseTool):
    """Google Custom Search JSON API. Enabled only when both key and engine id are set."""

    name = "custom_search"
    description = "Search the web for sources that confirm or contradict the content"

    BASE_URL = "https://www.googleapis.com/customsearch/v1"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def is_available(self) -> bool:
        return self.settings.has_custom_search

    async def lookup(self, query: str, max_results: int = 5) -> Lookup[list[SearchHit]]:
        """
        Run a web search.

        Args:
            query: Search query; truncated to 200 characters
            max_results: Number of results (Google caps this at 10)
        """
        if not self.settings.custom_search_engine_id:
            logger.warning("Custom Search Engine ID not configured")
            return Lookup.not_configured([])
        if not self.is_available:
            logger.warning("Custom Search API key not configured")
            return Lookup.not_configured([])

        params = {
            "key": self.settings.custom_search_api_key,
            "cx": self.settings.custom_search_engine_id,
            "q": query[:TRUNCATION.SEARCH_QUERY],
            "num": max(1, min(max_results, 10)),
        }

        try:
            async with httpx.AsyncClient(timeout=API_TIMEOUTS.EVIDENCE) as client:
                response = await client.get(self.BASE_URL, params=params)
            if response.status_code >= 400:
                logger.warning("Custom Search API failed: %s", response.status_code)
                return Lookup.unavailable([])
            data = response.json()
            hits = [
                SearchHit(
                    title=item.get("title") or "",
                    snippet=item.get("snippet") or "",
                    link=item.get("link") or "",
                    source=item.get("displayLink") or "",
                )
                for item in data.get("items", []) or []
            ]
        except Exception as e:
            logger.warning("Custom Search API error: %s", e)
            return Lookup.unavailable([])

        logger.info("Search results: %d results found", len(hits))
        return Lookup.ok(hits)
