"""
URL content extraction for MisIntel.
Fetches a page and reduces it to plain text for analysis.
"""

import logging
import re

import httpx

from tools.base import BaseTool
from config import TRUNCATION, API_TIMEOUTS, BOT_USER_AGENT

logger = logging.getLogger(__name__)

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def html_to_text(html: str, limit: int = TRUNCATION.EXTRACTED_CONTENT) -> str:
    """Strip scripts, styles and markup, collapse whitespace, truncate to ``limit``."""
    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return text[:limit]


class URLContentExtractor(BaseTool):
    """Extract article text from URLs."""

    name = "url_content_extractor"
    description = "Extract readable text from a web page"

    HEADERS = {
        "User-Agent": BOT_USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    }

    async def extract(self, url: str) -> str:
        """
        Extract text content from a URL.

        Returns:
            Up to 2000 characters of page text, or "" if the fetch fails
        """
        try:
            async with httpx.AsyncClient(
                timeout=API_TIMEOUTS.URL_FETCH, follow_redirects=True
            ) as client:
                response = await client.get(url, headers=self.HEADERS)
            if response.status_code >= 400:
                logger.warning("Failed to fetch URL %s: %s", url, response.status_code)
                return ""
            return html_to_text(response.text)
        except Exception as e:
            logger.warning("Error extracting URL content from %s: %s", url, e)
            return ""
